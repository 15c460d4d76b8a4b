# portfolio/backups.py

import logging
import re
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from portfolio.config import BACKUP_DIR, MAX_AUTO_BACKUPS
from portfolio.database import IS_SQLITE, engine, get_db
from portfolio.models import BackupLog
from portfolio.permissions import Admin, require_admin
from portfolio.utils.logging_utils import log_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Backups"])

BACKUP_NAME = re.compile(r"^(auto-)?backup-(\d{4}-\d{2}-\d{2}-\d{2}-\d{2}-\d{2})(?:-(\d+))?\.db$")


# ────────────────────────────────────────────────
# 🔧 Dateisystem
# ────────────────────────────────────────────────
def backup_filename(kind: str, now: datetime) -> str:
    prefix = "auto-backup" if kind == "auto" else "backup"
    return f"{prefix}-{now.strftime('%Y-%m-%d-%H-%M-%S')}.db"


def _free_path(filename: str) -> Path:
    """Zwei Sicherungen in derselben Sekunde bekommen einen Zähler."""
    path = BACKUP_DIR / filename
    counter = 1
    while path.exists():
        path = BACKUP_DIR / filename.replace(".db", f"-{counter}.db")
        counter += 1
    return path


def _backup_age(path: Path) -> tuple:
    """Sortierschlüssel: Änderungszeit, dann Zeitstempel im Namen, dann Zähler."""
    match = BACKUP_NAME.match(path.name)
    stamp = match.group(2) if match else ""
    counter = int(match.group(3)) if match and match.group(3) else 0
    return (path.stat().st_mtime, stamp, counter)


def _copy_database(target: Path) -> None:
    if not IS_SQLITE:
        raise RuntimeError("Backups werden nur für SQLite unterstützt")
    raw = engine.raw_connection()
    try:
        source = raw.driver_connection
        destination = sqlite3.connect(str(target))
        try:
            source.backup(destination)
        finally:
            destination.close()
    finally:
        raw.close()


def create_backup(db: Session, kind: str = "manual", now: Optional[datetime] = None) -> Path:
    """Konsistente Kopie über die SQLite-Backup-API; jeder Versuch wird protokolliert."""
    now = now or datetime.now()
    BACKUP_DIR.mkdir(parents=True, exist_ok=True)
    target = _free_path(backup_filename(kind, now))

    try:
        _copy_database(target)
    except (sqlite3.Error, OSError, RuntimeError) as e:
        logger.error("❌ Backup fehlgeschlagen: %s", e)
        target.unlink(missing_ok=True)
        db.add(BackupLog(filename=target.name, kind=kind, size=0, status="failed", error=str(e)))
        db.commit()
        raise

    size = target.stat().st_size
    db.add(BackupLog(filename=target.name, kind=kind, size=size, status="success"))
    db.commit()
    logger.info("💾 Backup erstellt: %s (%d Bytes)", target.name, size)
    return target


def prune_auto_backups(keep: int = MAX_AUTO_BACKUPS) -> List[str]:
    """Behält nur die neuesten automatischen Sicherungen; manuelle bleiben unangetastet."""
    autos = sorted(BACKUP_DIR.glob("auto-backup-*.db"), key=_backup_age, reverse=True)
    removed = []
    for path in autos[keep:]:
        path.unlink(missing_ok=True)
        removed.append(path.name)
    if removed:
        logger.info("🧹 %d alte Auto-Backups entfernt", len(removed))
    return removed


def list_backups() -> List[dict]:
    entries = []
    for path in BACKUP_DIR.glob("*.db"):
        if not BACKUP_NAME.match(path.name):
            continue
        stat = path.stat()
        entries.append({
            "filename": path.name,
            "size": stat.st_size,
            "created": datetime.fromtimestamp(stat.st_mtime),
            "kind": "auto" if path.name.startswith("auto-") else "manual",
        })
    entries.sort(key=lambda e: (e["created"], e["filename"]), reverse=True)
    return entries


def resolve_backup(filename: str) -> Path:
    if not BACKUP_NAME.match(filename):
        raise HTTPException(status_code=400, detail="Ungültiger Dateiname")
    path = BACKUP_DIR / filename
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Backup nicht gefunden")
    return path


# ────────────────────────────────────────────────
# 🌐 Routen
# ────────────────────────────────────────────────
@router.get("/backup")
def download_fresh_backup(db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    try:
        path = create_backup(db, kind="manual")
    except (sqlite3.Error, OSError, RuntimeError):
        raise HTTPException(status_code=500, detail="Backup fehlgeschlagen")
    return FileResponse(path, filename=path.name, media_type="application/octet-stream")


@router.get("/admin/backups")
def get_backups(_: Admin = Depends(require_admin)):
    return list_backups()


@router.post("/admin/backup")
def make_backup(db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    try:
        path = create_backup(db, kind="manual")
    except (sqlite3.Error, OSError, RuntimeError):
        raise HTTPException(status_code=500, detail="Backup fehlgeschlagen")
    log_activity(db, "backup_created", f"Backup erstellt: {path.name}")
    return {"success": True, "filename": path.name}


@router.get("/admin/backups/{filename}")
def download_backup(filename: str, _: Admin = Depends(require_admin)):
    path = resolve_backup(filename)
    return FileResponse(path, filename=path.name, media_type="application/octet-stream")


@router.delete("/admin/backups/{filename}")
def delete_backup(filename: str, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    path = resolve_backup(filename)
    path.unlink()
    log_activity(db, "backup_deleted", f"Backup gelöscht: {filename}")
    return {"success": True}
