# portfolio/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# 🔄 .env laden
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ────────────────────────────────────────────────
# 🌍 Server
# ────────────────────────────────────────────────
PORT = int(os.getenv("PORT", "3000"))
BASE_URL = os.getenv("BASE_URL", f"http://localhost:{PORT}")
SESSION_SECRET = os.getenv("SESSION_SECRET", "mas0n1x-portfolio-secret-change-me")
SESSION_MAX_AGE = 24 * 60 * 60  # 24 Stunden
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# ────────────────────────────────────────────────
# 📁 Verzeichnisse
# ────────────────────────────────────────────────
DATA_DIR = Path(os.getenv("DATA_DIR", "data"))
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "uploads"))
REQUEST_UPLOAD_DIR = UPLOAD_DIR / "requests"
DOCUMENT_UPLOAD_DIR = UPLOAD_DIR / "documents"
BACKUP_DIR = Path(os.getenv("BACKUP_DIR", str(DATA_DIR / "backups")))

for _folder in (DATA_DIR, UPLOAD_DIR, REQUEST_UPLOAD_DIR, DOCUMENT_UPLOAD_DIR, BACKUP_DIR):
    _folder.mkdir(parents=True, exist_ok=True)


# ────────────────────────────────────────────────
# 🗄 Datenbank
# ────────────────────────────────────────────────
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'portfolio.db'}")


# ────────────────────────────────────────────────
# ⏱ Hintergrundjobs
# ────────────────────────────────────────────────
ENABLE_SCHEDULER = _env_bool("ENABLE_SCHEDULER", True)
MAX_AUTO_BACKUPS = int(os.getenv("MAX_AUTO_BACKUPS", "7"))
BACKUP_INTERVAL_SECONDS = int(os.getenv("BACKUP_INTERVAL_SECONDS", "3600"))
REMINDER_INTERVAL_SECONDS = int(os.getenv("REMINDER_INTERVAL_SECONDS", str(6 * 3600)))

DEFAULT_ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")
