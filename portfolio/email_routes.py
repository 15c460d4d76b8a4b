# portfolio/email_routes.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, EmailStr
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.email_sender import send_email
from portfolio.models import EmailLog, EmailStatus
from portfolio.permissions import Admin, require_admin

router = APIRouter(prefix="/api", tags=["E-Mail"])


class TestEmail(BaseModel):
    to: EmailStr


class EmailLogOut(BaseModel):
    id: int
    recipient: Optional[str] = None
    subject: Optional[str] = None
    email_type: Optional[str] = None
    status: EmailStatus
    error: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ------------------------------------------------------------
# ✉️ Test-E-Mail
# ------------------------------------------------------------
@router.post("/email/test")
def send_test_email(data: TestEmail, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    result = send_email(
        db,
        data.to,
        "Test-E-Mail",
        "Wenn du diese Nachricht liest, funktioniert der E-Mail-Versand.",
        email_type="test",
    )
    if result.status == EmailStatus.skipped:
        raise HTTPException(status_code=400, detail=result.reason)
    if result.status == EmailStatus.failed:
        raise HTTPException(status_code=500, detail=result.reason)
    return {"success": True}


# ------------------------------------------------------------
# 📜 Versandprotokoll
# ------------------------------------------------------------
@router.get("/admin/email-logs", response_model=List[EmailLogOut])
def email_logs(
    limit: int = Query(100, ge=1, le=500),
    email_type: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    query = db.query(EmailLog)
    if email_type:
        query = query.filter(EmailLog.email_type == email_type)
    return query.order_by(EmailLog.created_at.desc(), EmailLog.id.desc()).limit(limit).all()
