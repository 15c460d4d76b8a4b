# portfolio/jobs.py
"""
Tägliche Hintergrundjobs: automatisches Backup und Zahlungserinnerungen.

Beide Prüfungen laufen mehrfach am Tag, arbeiten aber höchstens einmal pro
Kalendertag. Der letzte Lauf steht in der Tabelle job_runs und übersteht
damit auch einen Neustart.
"""

import asyncio
import contextlib
import logging
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from portfolio.backups import create_backup, prune_auto_backups
from portfolio.config import BACKUP_INTERVAL_SECONDS, BASE_URL, MAX_AUTO_BACKUPS, REMINDER_INTERVAL_SECONDS
from portfolio.database import SessionLocal
from portfolio.email_sender import notify
from portfolio.models import Invoice, InvoiceStatus, JobRun, utcnow
from portfolio.settings import get_bool_setting
from portfolio.utils.filters import format_currency, format_date
from portfolio.utils.logging_utils import log_activity

logger = logging.getLogger(__name__)

AUTO_BACKUP_JOB = "auto_backup"
PAYMENT_REMINDER_JOB = "payment_reminder"

_tasks: List[asyncio.Task] = []


# ────────────────────────────────────────────────
# 📌 Letzter Lauf
# ────────────────────────────────────────────────
def last_run(db: Session, name: str) -> Optional[date]:
    row = db.get(JobRun, name)
    return row.last_run_date if row else None


def mark_run(db: Session, name: str, day: date) -> None:
    row = db.get(JobRun, name)
    if row is None:
        db.add(JobRun(name=name, last_run_date=day))
    else:
        row.last_run_date = day
    db.commit()


# ────────────────────────────────────────────────
# 💾 Auto-Backup
# ────────────────────────────────────────────────
def run_auto_backup_check(db: Session, today: Optional[date] = None) -> Optional[Path]:
    today = today or date.today()
    if not get_bool_setting(db, "backup_enabled", False):
        return None
    if last_run(db, AUTO_BACKUP_JOB) == today:
        return None

    path = create_backup(db, kind="auto")
    prune_auto_backups(MAX_AUTO_BACKUPS)
    mark_run(db, AUTO_BACKUP_JOB, today)
    log_activity(db, "backup_created", f"Automatisches Backup erstellt: {path.name}")
    return path


# ────────────────────────────────────────────────
# 💶 Zahlungserinnerungen
# ────────────────────────────────────────────────
def run_payment_reminder_check(db: Session, today: Optional[date] = None) -> int:
    """Offene Rechnungen mit abgelaufener Frist → überfällig + Erinnerung."""
    today = today or date.today()
    if not get_bool_setting(db, "auto_payment_reminders", False):
        return 0
    if last_run(db, PAYMENT_REMINDER_JOB) == today:
        return 0

    overdue = (
        db.query(Invoice)
        .filter(Invoice.status == InvoiceStatus.offen, Invoice.due_date < today)
        .all()
    )
    for invoice in overdue:
        invoice.status = InvoiceStatus.ueberfaellig
        invoice.reminder_sent_at = utcnow()
        logger.info("⚠️ Rechnung %s ist überfällig", invoice.invoice_number)
    db.commit()

    for invoice in overdue:
        notify(
            db,
            invoice.customer_email,
            f"Zahlungserinnerung: Rechnung {invoice.invoice_number}",
            f"Guten Tag {invoice.customer_name},\n\n"
            f"die Rechnung {invoice.invoice_number} über {format_currency(invoice.total)} "
            f"war am {format_date(invoice.due_date)} fällig. Bitte überweisen Sie den Betrag "
            "zeitnah. Sollte sich Ihre Zahlung mit dieser Erinnerung überschnitten haben, "
            "betrachten Sie diese Nachricht bitte als gegenstandslos.",
            email_type="payment_reminder",
            action_url=BASE_URL,
        )

    mark_run(db, PAYMENT_REMINDER_JOB, today)
    if overdue:
        log_activity(db, "payment_reminder", f"{len(overdue)} Rechnung(en) als überfällig markiert")
    return len(overdue)


# ────────────────────────────────────────────────
# ⏱ Scheduler (asyncio)
# ────────────────────────────────────────────────
def run_job(job: Callable[[Session], object]) -> None:
    db = SessionLocal()
    try:
        job(db)
    finally:
        db.close()


async def job_loop(name: str, job: Callable[[Session], object], interval: int) -> None:
    logger.info("⏱ Job %s gestartet (Intervall %ss)", name, interval)
    while True:
        try:
            await asyncio.to_thread(run_job, job)
        except Exception:
            # nächster Versuch im nächsten Intervall
            logger.exception("❌ Job %s fehlgeschlagen", name)
        await asyncio.sleep(interval)


def start_scheduler() -> List[asyncio.Task]:
    if _tasks:
        return _tasks
    _tasks.append(asyncio.create_task(job_loop(AUTO_BACKUP_JOB, run_auto_backup_check, BACKUP_INTERVAL_SECONDS)))
    _tasks.append(asyncio.create_task(job_loop(PAYMENT_REMINDER_JOB, run_payment_reminder_check, REMINDER_INTERVAL_SECONDS)))
    return _tasks


async def stop_scheduler() -> None:
    for task in _tasks:
        task.cancel()
    for task in _tasks:
        with contextlib.suppress(asyncio.CancelledError):
            await task
    _tasks.clear()
