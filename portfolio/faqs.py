# portfolio/faqs.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import FAQ
from portfolio.permissions import Admin, require_admin

router = APIRouter(prefix="/api", tags=["FAQ"])


class FAQIn(BaseModel):
    question: str
    answer: str
    category: str = "general"
    sort_order: int = 0
    is_active: bool = True


class FAQUpdate(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None
    category: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class FAQOut(BaseModel):
    id: int
    question: str
    answer: str
    category: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


@router.get("/faqs", response_model=List[FAQOut])
def public_faqs(db: Session = Depends(get_db)):
    return (
        db.query(FAQ)
        .filter(FAQ.is_active.is_(True))
        .order_by(FAQ.sort_order.asc(), FAQ.id.asc())
        .all()
    )


@router.get("/admin/faqs", response_model=List[FAQOut])
def admin_faqs(db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    return db.query(FAQ).order_by(FAQ.sort_order.asc(), FAQ.id.asc()).all()


@router.post("/admin/faqs", response_model=FAQOut)
def create_faq(data: FAQIn, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    faq = FAQ(**data.model_dump())
    db.add(faq)
    db.commit()
    db.refresh(faq)
    return faq


@router.put("/admin/faqs/{faq_id}", response_model=FAQOut)
def update_faq(
    faq_id: int,
    data: FAQUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    faq = db.get(FAQ, faq_id)
    if not faq:
        raise HTTPException(status_code=404, detail="FAQ nicht gefunden")
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(faq, field, value)
    db.commit()
    db.refresh(faq)
    return faq


@router.delete("/admin/faqs/{faq_id}")
def delete_faq(faq_id: int, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    faq = db.get(FAQ, faq_id)
    if not faq:
        raise HTTPException(status_code=404, detail="FAQ nicht gefunden")
    db.delete(faq)
    db.commit()
    return {"success": True}
