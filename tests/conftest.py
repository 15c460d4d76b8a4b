# tests/conftest.py
# Eigene Datenbank + Upload-/Backup-Ordner für die Tests, bevor main importiert wird.
import os
import shutil
import tempfile
from datetime import date, timedelta
from pathlib import Path

import pytest

_TMP = Path(tempfile.mkdtemp(prefix="portfolio-tests-"))
os.environ["DATA_DIR"] = str(_TMP / "data")
os.environ["DATABASE_URL"] = f"sqlite:///{(_TMP / 'data' / 'test.db').as_posix()}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["BACKUP_DIR"] = str(_TMP / "backups")
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["SESSION_SECRET"] = "test-secret"
os.environ["ADMIN_PASSWORD"] = "admin"

from fastapi.testclient import TestClient  # noqa: E402

from main import app  # noqa: E402
from portfolio.auth import ensure_admin  # noqa: E402
from portfolio.config import BACKUP_DIR, DOCUMENT_UPLOAD_DIR, REQUEST_UPLOAD_DIR, UPLOAD_DIR  # noqa: E402
from portfolio.database import Base, SessionLocal, engine  # noqa: E402

PASSWORD = "geheim123"


@pytest.fixture(autouse=True)
def reset_database():
    """Jeder Test startet mit leerer Datenbank und leeren Ordnern."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_admin(db)
    finally:
        db.close()

    for folder in (BACKUP_DIR, UPLOAD_DIR):
        shutil.rmtree(folder, ignore_errors=True)
    for folder in (BACKUP_DIR, UPLOAD_DIR, REQUEST_UPLOAD_DIR, DOCUMENT_UPLOAD_DIR):
        folder.mkdir(parents=True, exist_ok=True)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin_client():
    c = TestClient(app)
    r = c.post("/api/login", json={"password": "admin"})
    assert r.status_code == 200
    return c


def register(c: TestClient, email: str, password: str = PASSWORD, **extra) -> int:
    r = c.post("/api/customer/register", json={"email": email, "password": password, **extra})
    assert r.status_code == 200, r.text
    return r.json()["customer_id"]


@pytest.fixture
def customer_client():
    c = TestClient(app)
    c.customer_id = register(c, "max@beispiel.de", name="Max Mustermann", company="Muster GmbH")
    return c


@pytest.fixture
def other_customer_client():
    c = TestClient(app)
    c.customer_id = register(c, "erika@beispiel.de", name="Erika Beispiel")
    return c


def create_request(c: TestClient, project_type: str = "webdesign", **extra) -> int:
    payload = {
        "project_type": project_type,
        "budget": "1000-2500",
        "timeline": "1-monat",
        "description": "Neue Firmenwebseite mit Kontaktformular",
        **extra,
    }
    r = c.post("/api/requests", json=payload)
    assert r.status_code == 200, r.text
    return r.json()["id"]


def next_weekday(days_ahead: int = 7) -> date:
    day = date.today() + timedelta(days=days_ahead)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def next_saturday() -> date:
    day = date.today() + timedelta(days=1)
    while day.weekday() != 5:
        day += timedelta(days=1)
    return day
