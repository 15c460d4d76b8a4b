# portfolio/customers.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy import func
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import Customer, ProjectRequest, RequestStatus
from portfolio.permissions import Admin, require_admin
from portfolio.utils.logging_utils import log_activity
from portfolio.utils.uploads import delete_upload

router = APIRouter(prefix="/api/customers", tags=["Kunden"])


# 📝 Pydantic Schemas
class CustomerListItem(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    request_count: int = 0


class CustomerRequestOut(BaseModel):
    id: int
    project_type: str
    budget: Optional[str] = None
    timeline: Optional[str] = None
    description: Optional[str] = None
    status: RequestStatus
    progress: int = 0
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomerDetail(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    requests: List[CustomerRequestOut] = []

    model_config = ConfigDict(from_attributes=True)


def collect_customer_files(customer: Customer) -> List[str]:
    """Alle Upload-URLs, die mit dem Kunden verschwinden müssen."""
    urls = [doc.file_path for doc in customer.documents]
    for req in customer.requests:
        urls.extend(f.file_path for f in req.files)
    return urls


# 📋 Alle Kunden abrufen
@router.get("", response_model=List[CustomerListItem])
def list_customers(
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    rows = (
        db.query(Customer, func.count(ProjectRequest.id))
        .outerjoin(ProjectRequest, ProjectRequest.customer_id == Customer.id)
        .group_by(Customer.id)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .all()
    )
    return [
        CustomerListItem(
            id=c.id, email=c.email, name=c.name, company=c.company,
            phone=c.phone, created_at=c.created_at, request_count=count,
        )
        for c, count in rows
    ]


# 🔍 Einzelner Kunde inkl. Anfragen
@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    customer = db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Kunde nicht gefunden")
    return customer


# 🗑 Kunde löschen (Anfragen, Nachrichten, Dateien, Termine, Bewertungen)
@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    customer = db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Kunde nicht gefunden")

    email = customer.email
    files = collect_customer_files(customer)

    db.delete(customer)
    db.commit()

    for url in files:
        delete_upload(url)

    log_activity(db, "customer_deleted", f"Kunde gelöscht: {email}")
    return {"success": True}
