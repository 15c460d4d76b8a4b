# portfolio/email_sender.py

import logging
import os
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from portfolio.config import BASE_URL
from portfolio.models import EmailLog, EmailStatus
from portfolio.settings import get_bool_setting, get_int_setting, get_setting

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))

SMTP_TIMEOUT = 15


@dataclass(frozen=True)
class EmailResult:
    status: EmailStatus
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == EmailStatus.sent


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    user: str
    password: str
    from_name: str


# ------------------------------------------------------------
# 1) Konfiguration aus der settings-Tabelle (bei jedem Versand neu)
# ------------------------------------------------------------
def load_smtp_config(db: Session) -> Optional[SmtpConfig]:
    host = get_setting(db, "smtp_host", "")
    user = get_setting(db, "smtp_user", "")
    if not host or not user:
        return None
    return SmtpConfig(
        host=host,
        port=get_int_setting(db, "smtp_port", 587),
        user=user,
        password=get_setting(db, "smtp_pass", "") or "",
        from_name=get_setting(db, "smtp_from_name", "") or get_setting(db, "impressum_name", "") or "",
    )


# ------------------------------------------------------------
# 2) HTML rendern
# ------------------------------------------------------------
def build_email_html(subject: str, body: str, action_url=None, action_text=None) -> str:
    return templates.get_template("email/base_email.html").render({
        "subject": subject,
        "body": body,
        "action_url": action_url,
        "action_text": action_text,
        "base_url": BASE_URL,
    })


# ------------------------------------------------------------
# 3) SMTP senden
# ------------------------------------------------------------
def send_via_smtp(config: SmtpConfig, to_email: str, subject: str, html_body: str, text_body: str) -> None:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = formataddr((config.from_name, config.user)) if config.from_name else config.user
    msg["To"] = to_email

    msg.attach(MIMEText(text_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    if config.port == 465:
        server = smtplib.SMTP_SSL(config.host, config.port, timeout=SMTP_TIMEOUT)
    else:
        server = smtplib.SMTP(config.host, config.port, timeout=SMTP_TIMEOUT)

    with server:
        if config.port != 465:
            server.starttls()
        if config.password:
            server.login(config.user, config.password)
        server.sendmail(config.user, [to_email], msg.as_string())


def _log(db: Session, to: str, subject: str, email_type: str, result: EmailResult) -> None:
    db.add(EmailLog(
        recipient=to,
        subject=subject,
        email_type=email_type,
        status=result.status,
        error=result.reason,
    ))
    db.commit()


# ------------------------------------------------------------
# 4) Zentrale Versandfunktion
# ------------------------------------------------------------
def send_email(
    db: Session,
    to: Optional[str],
    subject: str,
    body: str,
    email_type: str = "general",
    action_url: Optional[str] = None,
    action_text: Optional[str] = None,
) -> EmailResult:
    """
    Versendet eine E-Mail, falls aktiviert und konfiguriert.
    Wirft nie; jeder Versuch landet in email_logs.
    """
    if not get_bool_setting(db, "email_enabled", False):
        result = EmailResult(EmailStatus.skipped, "E-Mail-Versand deaktiviert")
    elif not to:
        result = EmailResult(EmailStatus.skipped, "Kein Empfänger")
    else:
        config = load_smtp_config(db)
        if config is None:
            result = EmailResult(EmailStatus.skipped, "SMTP nicht konfiguriert")
        else:
            html_body = build_email_html(subject, body, action_url, action_text)
            try:
                send_via_smtp(config, to, subject, html_body, body)
                result = EmailResult(EmailStatus.sent)
                logger.info("📧 E-Mail '%s' an %s gesendet", subject, to)
            except (smtplib.SMTPException, OSError) as e:
                result = EmailResult(EmailStatus.failed, f"SMTP Fehler: {e}")
                logger.error("❌ E-Mail an %s fehlgeschlagen: %s", to, e)

    _log(db, to or "", subject, email_type, result)
    return result


def admin_recipient(db: Session) -> Optional[str]:
    return get_setting(db, "admin_email") or get_setting(db, "impressum_email") or None


def notify(db: Session, to: Optional[str], subject: str, body: str, email_type: str, **kwargs) -> EmailResult:
    """Benachrichtigung nach einer Änderung; ein Fehler hier darf die Änderung nie zurückdrehen."""
    try:
        return send_email(db, to, subject, body, email_type, **kwargs)
    except Exception as e:
        logger.exception("❌ Benachrichtigung '%s' fehlgeschlagen", email_type)
        db.rollback()
        return EmailResult(EmailStatus.failed, str(e))
