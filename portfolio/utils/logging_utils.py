# portfolio/utils/logging_utils.py

import logging

from sqlalchemy.orm import Session

from portfolio.models import Activity

logger = logging.getLogger(__name__)


def log_activity(db: Session, type: str, message: str, commit: bool = True) -> Activity:
    """
    📝 Speichert ein Ereignis im Aktivitätsverlauf (Dashboard).
    - type: Kurzkennung, z. B. 'request_received'
    - message: lesbarer Text, z. B. 'Neue Anfrage von max@beispiel.de'
    """
    entry = Activity(type=type, message=message[:500])
    db.add(entry)
    if commit:
        db.commit()
    logger.info("[%s] %s", type, message)
    return entry
