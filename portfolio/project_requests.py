# portfolio/project_requests.py

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session, joinedload

from portfolio.config import BASE_URL
from portfolio.database import get_db
from portfolio.email_sender import admin_recipient, notify
from portfolio.models import Customer, ProjectRequest, RequestStatus
from portfolio.permissions import (
    Admin,
    CustomerIdentity,
    require_admin,
    require_customer,
)
from portfolio.settings import get_bool_setting
from portfolio.utils.labels import PROJECT_TYPE_LABELS, REQUEST_STATUS_LABELS, label
from portfolio.utils.logging_utils import log_activity
from portfolio.utils.status import REQUEST_TRANSITIONS, ensure_transition
from portfolio.utils.uploads import delete_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Anfragen"])


# 📝 Pydantic Schemas
class RequestCreate(BaseModel):
    project_type: str = Field(min_length=1, max_length=50)
    budget: Optional[str] = None
    timeline: Optional[str] = None
    description: Optional[str] = None


class RequestUpdate(BaseModel):
    status: Optional[RequestStatus] = None
    deadline: Optional[date] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    admin_notes: Optional[str] = None


class RequestOut(BaseModel):
    id: int
    customer_id: int
    project_type: str
    budget: Optional[str] = None
    timeline: Optional[str] = None
    description: Optional[str] = None
    status: RequestStatus
    deadline: Optional[date] = None
    progress: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminRequestOut(RequestOut):
    admin_notes: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None


def admin_request_out(req: ProjectRequest) -> AdminRequestOut:
    out = AdminRequestOut.model_validate(req)
    out.admin_notes = req.admin_notes
    if req.customer is not None:
        out.email = req.customer.email
        out.name = req.customer.name
        out.company = req.customer.company
        out.phone = req.customer.phone
    return out


def get_request_or_404(db: Session, request_id: int) -> ProjectRequest:
    req = db.get(ProjectRequest, request_id)
    if not req:
        raise HTTPException(status_code=404, detail="Anfrage nicht gefunden")
    return req


def get_owned_request(db: Session, request_id: int, customer_id: int) -> ProjectRequest:
    req = get_request_or_404(db, request_id)
    if req.customer_id != customer_id:
        raise HTTPException(status_code=403, detail="Kein Zugriff")
    return req


def collect_request_files(req: ProjectRequest) -> List[str]:
    return [f.file_path for f in req.files]


# ============================================================
# 👤 Kunde
# ============================================================
@router.post("/requests")
def create_request(
    data: RequestCreate,
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    customer = db.get(Customer, identity.customer_id)
    if customer is None:
        raise HTTPException(status_code=401, detail="Nicht angemeldet")

    req = ProjectRequest(
        customer_id=customer.id,
        project_type=data.project_type,
        budget=data.budget,
        timeline=data.timeline,
        description=data.description,
        status=RequestStatus.new,
    )
    db.add(req)
    db.commit()
    db.refresh(req)

    type_label = label(PROJECT_TYPE_LABELS, req.project_type)
    log_activity(db, "request_received", f"Neue Anfrage ({type_label}) von {customer.email}")

    if get_bool_setting(db, "notify_new_request"):
        notify(
            db,
            admin_recipient(db),
            f"Neue Projektanfrage: {type_label}",
            f"{customer.name or customer.email} hat eine neue Anfrage gestellt.\n\n"
            f"{req.description or ''}",
            email_type="new_request",
            action_url=f"{BASE_URL}/admin/",
            action_text="Im Admin-Bereich öffnen",
        )

    return {"success": True, "id": req.id}


@router.get("/requests", response_model=List[RequestOut])
def list_my_requests(
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    return (
        db.query(ProjectRequest)
        .filter(ProjectRequest.customer_id == identity.customer_id)
        .order_by(ProjectRequest.created_at.desc(), ProjectRequest.id.desc())
        .all()
    )


@router.get("/requests/{request_id}", response_model=RequestOut)
def get_my_request(
    request_id: int,
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    return get_owned_request(db, request_id, identity.customer_id)


# ============================================================
# 🔐 Admin
# ============================================================
@router.get("/admin/requests", response_model=List[AdminRequestOut])
def list_all_requests(
    status: Optional[RequestStatus] = None,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    query = db.query(ProjectRequest).options(joinedload(ProjectRequest.customer))
    if status is not None:
        query = query.filter(ProjectRequest.status == status)
    rows = query.order_by(ProjectRequest.created_at.desc(), ProjectRequest.id.desc()).all()
    return [admin_request_out(r) for r in rows]


@router.get("/admin/requests/{request_id}", response_model=AdminRequestOut)
def get_request_admin(
    request_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    return admin_request_out(get_request_or_404(db, request_id))


@router.put("/admin/requests/{request_id}")
def update_request(
    request_id: int,
    data: RequestUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    req = get_request_or_404(db, request_id)
    old_status = req.status

    if data.status is not None:
        ensure_transition(REQUEST_TRANSITIONS, old_status, data.status)
        req.status = data.status

    # explizites null löscht Deadline/Notizen, fehlendes Feld behält den Wert
    if "deadline" in data.model_fields_set:
        req.deadline = data.deadline
    if data.progress is not None:
        req.progress = data.progress
    if "admin_notes" in data.model_fields_set:
        req.admin_notes = data.admin_notes

    db.commit()
    db.refresh(req)

    if req.status != old_status:
        status_label = label(REQUEST_STATUS_LABELS, req.status)
        log_activity(db, "request_status", f"Anfrage #{req.id}: Status → {status_label}")

        if get_bool_setting(db, "notify_status_change"):
            notify(
                db,
                req.customer.email if req.customer else None,
                f"Status Ihrer Anfrage #{req.id}: {status_label}",
                f"Der Status Ihrer Anfrage ({label(PROJECT_TYPE_LABELS, req.project_type)}) "
                f"wurde auf '{status_label}' geändert.\nFortschritt: {req.progress or 0}%",
                email_type="status_update",
                action_url=f"{BASE_URL}/kunde/",
                action_text="Anfrage ansehen",
            )

    return {"success": True, "request": admin_request_out(req)}


@router.delete("/admin/requests/{request_id}")
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    req = get_request_or_404(db, request_id)
    files = collect_request_files(req)

    db.delete(req)
    db.commit()

    for url in files:
        delete_upload(url)

    log_activity(db, "request_deleted", f"Anfrage #{request_id} gelöscht")
    return {"success": True}
