# portfolio/dashboard.py

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import (
    Activity,
    Customer,
    Invoice,
    InvoiceStatus,
    Project,
    ProjectRequest,
    RequestStatus,
)
from portfolio.permissions import Admin, require_admin

router = APIRouter(prefix="/api", tags=["Dashboard"])

OPEN_REQUEST_STATUSES = (RequestStatus.new, RequestStatus.in_progress, RequestStatus.waiting)


def revenue_summary(db: Session, today: date) -> dict:
    """Summen über alle Rechnungen; offene mit überschrittener Frist zählen als überfällig."""
    total = paid = open_sum = overdue = 0.0
    for invoice in db.query(Invoice).all():
        amount = invoice.total or 0
        total += amount
        if invoice.status == InvoiceStatus.bezahlt:
            paid += amount
        elif invoice.status == InvoiceStatus.ueberfaellig or (invoice.due_date and invoice.due_date < today):
            overdue += amount
        else:
            open_sum += amount
    return {
        "total": round(total, 2),
        "paid": round(paid, 2),
        "open": round(open_sum, 2),
        "overdue": round(overdue, 2),
    }


# 🏠 Dashboard-Kennzahlen
@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    activities = (
        db.query(Activity)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(10)
        .all()
    )
    return {
        "stats": {
            "projects": db.query(Project).count(),
            "customers": db.query(Customer).count(),
            "open_requests": db.query(ProjectRequest)
            .filter(ProjectRequest.status.in_(OPEN_REQUEST_STATUSES))
            .count(),
            "invoices": db.query(Invoice).count(),
        },
        "revenue": revenue_summary(db, date.today()),
        "activities": [
            {"id": a.id, "type": a.type, "message": a.message, "created_at": a.created_at}
            for a in activities
        ],
    }
