# portfolio/message_templates.py

from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import MessageTemplate, ProjectRequest
from portfolio.permissions import Admin, require_admin
from portfolio.settings import get_settings_map
from portfolio.utils.placeholders import build_placeholders, substitute

router = APIRouter(prefix="/api/admin/templates", tags=["Vorlagen"])

TemplateCategory = Literal["greeting", "status", "followup", "closing", "general"]


class TemplateIn(BaseModel):
    name: str
    subject: Optional[str] = None
    category: TemplateCategory = "general"
    content: str


class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    subject: Optional[str] = None
    category: Optional[TemplateCategory] = None
    content: Optional[str] = None


class TemplateOut(BaseModel):
    id: int
    name: str
    subject: Optional[str] = None
    category: str
    content: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def get_template_or_404(db: Session, template_id: int) -> MessageTemplate:
    template = db.get(MessageTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Vorlage nicht gefunden")
    return template


@router.get("", response_model=List[TemplateOut])
def list_templates(
    category: Optional[TemplateCategory] = None,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    query = db.query(MessageTemplate)
    if category:
        query = query.filter(MessageTemplate.category == category)
    return query.order_by(MessageTemplate.category.asc(), MessageTemplate.name.asc()).all()


@router.post("", response_model=TemplateOut)
def create_template(data: TemplateIn, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    template = MessageTemplate(**data.model_dump())
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@router.put("/{template_id}", response_model=TemplateOut)
def update_template(
    template_id: int,
    data: TemplateUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    template = get_template_or_404(db, template_id)
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(template, field, value)
    db.commit()
    db.refresh(template)
    return template


@router.delete("/{template_id}")
def delete_template(template_id: int, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    template = get_template_or_404(db, template_id)
    db.delete(template)
    db.commit()
    return {"success": True}


@router.get("/{template_id}/render")
def render_template(
    template_id: int,
    request_id: Optional[int] = None,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    """Setzt Kunden-/Anfragedaten in eine Vorlage ein (gleiche Tokens wie Verträge)."""
    template = get_template_or_404(db, template_id)

    req = None
    if request_id is not None:
        req = db.get(ProjectRequest, request_id)
        if not req:
            raise HTTPException(status_code=404, detail="Anfrage nicht gefunden")

    values = build_placeholders(req.customer if req else None, req, get_settings_map(db))
    return {
        "subject": substitute(template.subject or "", values),
        "content": substitute(template.content, values),
    }
