# portfolio/database.py

import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from portfolio.config import DATABASE_URL, LOG_LEVEL

IS_SQLITE = DATABASE_URL.startswith("sqlite")


# ────────────────────────────────────────────────
# 🔌 Engine
# ────────────────────────────────────────────────
def create_portfolio_engine(url: str) -> Engine:
    """Erstellt die Engine; SQLite braucht check_same_thread=False für FastAPI."""
    print(f"[DB] Verbindung → {url}")
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(
        url,
        echo=LOG_LEVEL == "DEBUG",
        pool_pre_ping=True,
        connect_args=connect_args,
        future=True,
    )
    return engine


engine = create_portfolio_engine(DATABASE_URL)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # ON DELETE SET NULL / CASCADE greifen bei SQLite nur mit diesem Pragma
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# ────────────────────────────────────────────────
# 📌 Dependency für FastAPI (DB Session)
# ────────────────────────────────────────────────
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ────────────────────────────────────────────────
# 🧱 Tabellen + Admin-Zugang
# ────────────────────────────────────────────────
def init_db():
    """
    Erstellt fehlende Tabellen und legt den Admin-Zugang an.
    Für Schemaänderungen gibt es die Alembic-Migrationen.
    """
    import portfolio.models  # noqa: F401
    from portfolio.auth import ensure_admin

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_admin(db)
    finally:
        db.close()
    print("📦 Datenbanktabellen bereit")
