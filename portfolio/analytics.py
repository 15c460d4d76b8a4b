# portfolio/analytics.py

from collections import Counter, defaultdict
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import (
    Customer,
    Invoice,
    InvoiceStatus,
    Message,
    ProjectRequest,
    RequestStatus,
    SenderType,
)
from portfolio.permissions import Admin, require_admin

router = APIRouter(prefix="/api/admin", tags=["Analytics"])

WINDOW_MONTHS = 6


def trailing_months(today: date, count: int = WINDOW_MONTHS) -> List[str]:
    """['2024-01', ..., '2024-06'] inklusive aktuellem Monat, älteste zuerst."""
    year, month = today.year, today.month
    months = []
    for _ in range(count):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def month_key(value) -> Optional[str]:
    if value is None:
        return None
    return f"{value.year:04d}-{value.month:02d}"


def conversion(db: Session) -> Dict:
    total = db.query(func.count(ProjectRequest.id)).scalar() or 0
    completed = (
        db.query(func.count(ProjectRequest.id))
        .filter(ProjectRequest.status == RequestStatus.completed)
        .scalar() or 0
    )
    rate = round(completed / total * 100, 1) if total else 0
    return {"total": total, "completed": completed, "rate": rate}


def project_types(db: Session) -> List[Dict]:
    rows = (
        db.query(ProjectRequest.project_type, func.count(ProjectRequest.id))
        .group_by(ProjectRequest.project_type)
        .order_by(func.count(ProjectRequest.id).desc())
        .all()
    )
    return [{"project_type": t, "count": c} for t, c in rows]


def status_distribution(db: Session) -> List[Dict]:
    counts = Counter(s for (s,) in db.query(ProjectRequest.status).all())
    return [{"status": s.value, "count": counts.get(s, 0)} for s in RequestStatus if counts.get(s)]


def requests_per_month(db: Session, months: List[str]) -> List[Dict]:
    buckets = dict.fromkeys(months, 0)
    for (created_at,) in db.query(ProjectRequest.created_at).all():
        key = month_key(created_at)
        if key in buckets:
            buckets[key] += 1
    return [{"month": m, "count": c} for m, c in buckets.items()]


def revenue_per_month(db: Session, months: List[str]) -> List[Dict]:
    """Bezahlte Rechnungen nach Zahlungsdatum (ersatzweise Rechnungsdatum)."""
    buckets = dict.fromkeys(months, 0.0)
    paid = db.query(Invoice).filter(Invoice.status == InvoiceStatus.bezahlt).all()
    for invoice in paid:
        key = month_key(invoice.paid_date or invoice.invoice_date)
        if key in buckets:
            buckets[key] += invoice.total or 0
    return [{"month": m, "revenue": round(v, 2)} for m, v in buckets.items()]


def avg_response_time_hours(db: Session) -> Optional[float]:
    """Mittlere Zeit zwischen Anfrage und erster Admin-Antwort."""
    first_reply = dict(
        db.query(Message.request_id, func.min(Message.created_at))
        .filter(Message.sender_type == SenderType.admin)
        .group_by(Message.request_id)
        .all()
    )
    if not first_reply:
        return None

    delays = []
    for req_id, created_at in db.query(ProjectRequest.id, ProjectRequest.created_at).all():
        replied = first_reply.get(req_id)
        if replied is None or created_at is None:
            continue
        delays.append(max((replied - created_at).total_seconds(), 0) / 3600)

    if not delays:
        return None
    return round(sum(delays) / len(delays), 1)


def top_customers(db: Session, limit: int = 5) -> List[Dict]:
    paid_by_customer = defaultdict(float)
    paid_by_email = defaultdict(float)
    for invoice in db.query(Invoice).filter(Invoice.status == InvoiceStatus.bezahlt).all():
        if invoice.customer_id is not None:
            paid_by_customer[invoice.customer_id] += invoice.total or 0
        elif invoice.customer_email:
            paid_by_email[invoice.customer_email.lower()] += invoice.total or 0

    rows = (
        db.query(Customer, func.count(ProjectRequest.id))
        .join(ProjectRequest, ProjectRequest.customer_id == Customer.id)
        .group_by(Customer.id)
        .all()
    )
    result = [
        {
            "id": c.id,
            "email": c.email,
            "name": c.name,
            "company": c.company,
            "request_count": count,
            "total_value": round(paid_by_customer[c.id] + paid_by_email[c.email.lower()], 2),
        }
        for c, count in rows
    ]
    result.sort(key=lambda r: (r["request_count"], r["total_value"]), reverse=True)
    return result[:limit]


@router.get("/analytics")
def analytics(db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    months = trailing_months(date.today())
    return {
        "conversion": conversion(db),
        "project_types": project_types(db),
        "requests_per_month": requests_per_month(db, months),
        "revenue_per_month": revenue_per_month(db, months),
        "avg_response_time_hours": avg_response_time_hours(db),
        "status_distribution": status_distribution(db),
        "top_customers": top_customers(db),
    }
