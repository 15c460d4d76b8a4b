# portfolio/settings.py

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import Setting
from portfolio.permissions import Admin, Identity, get_identity, require_admin

router = APIRouter(prefix="/api", tags=["Einstellungen"])

# Zugangsdaten nie an anonyme Besucher ausliefern
PRIVATE_KEYS = {"smtp_user", "smtp_pass"}

# Schalter, die ohne Eintrag als aktiv gelten
DEFAULT_TRUE_KEYS = {"notify_new_message", "notify_new_request", "notify_status_change"}

LEGAL_PAGES = {
    "impressum": [
        "impressum_name", "impressum_street", "impressum_zip", "impressum_city",
        "impressum_country", "impressum_email", "impressum_phone", "impressum_ustid",
        "impressum_job", "impressum_disclaimer",
    ],
    "datenschutz": ["impressum_name", "impressum_email", "datenschutz_custom"],
    "agb": ["impressum_name", "agb_custom"],
    "widerruf": ["impressum_name", "impressum_email", "widerruf_custom"],
}


# ============================================================
# 🔧 Hilfsfunktionen (auch von E-Mail, Jobs, Verträgen genutzt)
# ============================================================
def get_settings_map(db: Session) -> Dict[str, str]:
    return {row.key: row.value or "" for row in db.query(Setting).all()}


def get_setting(db: Session, key: str, default: Optional[str] = None) -> Optional[str]:
    row = db.query(Setting).filter(Setting.key == key).first()
    if row is None or row.value is None:
        return default
    return row.value


def get_bool_setting(db: Session, key: str, default: Optional[bool] = None) -> bool:
    if default is None:
        default = key in DEFAULT_TRUE_KEYS
    value = get_setting(db, key)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def get_int_setting(db: Session, key: str, default: int) -> int:
    value = get_setting(db, key)
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


def get_decimal_setting(db: Session, key: str, default: Decimal) -> Decimal:
    """Betrag mit Komma oder Punkt als Dezimaltrenner, z. B. '75,50' oder '75 €'."""
    value = get_setting(db, key)
    if value in (None, ""):
        return default
    cleaned = value.replace("€", "").replace(" ", "").replace(",", ".")
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return default
    return number if number.is_finite() and number >= 0 else default


def set_setting(db: Session, key: str, value: Any) -> None:
    """Upsert; Booleans werden als 'true'/'false' gespeichert."""
    if isinstance(value, bool):
        value = "true" if value else "false"
    elif value is None:
        value = ""
    else:
        value = str(value)

    row = db.query(Setting).filter(Setting.key == key).first()
    if row is None:
        db.add(Setting(key=key, value=value))
    else:
        row.value = value


# ============================================================
# 🌐 Routen
# ============================================================
@router.get("/settings")
def read_settings(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    settings = get_settings_map(db)
    if not isinstance(identity, Admin):
        settings = {k: v for k, v in settings.items() if k not in PRIVATE_KEYS}
    return settings


@router.post("/settings")
def save_settings(
    payload: Dict[str, Any],
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    for key, value in payload.items():
        if not key or len(key) > 100:
            raise HTTPException(status_code=400, detail=f"Ungültiger Schlüssel: {key!r}")
        set_setting(db, key, value)
    db.commit()
    return {"success": True}


@router.get("/legal/{page}")
def legal_page(page: str, db: Session = Depends(get_db)):
    keys = LEGAL_PAGES.get(page)
    if keys is None:
        raise HTTPException(status_code=404, detail="Seite nicht gefunden")
    settings = get_settings_map(db)
    return {key: settings.get(key, "") for key in keys}
