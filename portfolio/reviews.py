# portfolio/reviews.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import ProjectRequest, RequestStatus, Review
from portfolio.permissions import Admin, CustomerIdentity, require_admin, require_customer
from portfolio.utils.labels import PROJECT_TYPE_LABELS, label
from portfolio.utils.logging_utils import log_activity

router = APIRouter(prefix="/api", tags=["Bewertungen"])


# 📝 Pydantic Schemas
class ReviewCreate(BaseModel):
    request_id: int
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = None
    content: Optional[str] = None


class ReviewModerate(BaseModel):
    is_approved: Optional[bool] = None
    is_public: Optional[bool] = None


class ReviewOut(BaseModel):
    id: int
    request_id: int
    customer_id: int
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None
    is_public: bool
    is_approved: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PublicReview(BaseModel):
    id: int
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None
    customer_name: Optional[str] = None
    company: Optional[str] = None
    project_type: Optional[str] = None
    created_at: Optional[datetime] = None


# ============================================================
# 👤 Kunde
# ============================================================
@router.post("/customer/reviews", response_model=ReviewOut)
def create_review(
    data: ReviewCreate,
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    req = db.get(ProjectRequest, data.request_id)
    if not req:
        raise HTTPException(status_code=404, detail="Anfrage nicht gefunden")
    if req.customer_id != identity.customer_id:
        raise HTTPException(status_code=403, detail="Kein Zugriff")
    if req.status != RequestStatus.completed:
        raise HTTPException(status_code=400, detail="Bewertung erst nach Projektabschluss möglich")

    existing = (
        db.query(Review)
        .filter(Review.request_id == req.id, Review.customer_id == identity.customer_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="Projekt wurde bereits bewertet")

    review = Review(
        request_id=req.id,
        customer_id=identity.customer_id,
        rating=data.rating,
        title=data.title,
        content=data.content,
        is_public=True,
        is_approved=False,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Projekt wurde bereits bewertet")
    db.refresh(review)

    log_activity(db, "review_received", f"Neue Bewertung ({review.rating}★) zu Anfrage #{req.id}")
    return review


@router.get("/customer/reviews", response_model=List[ReviewOut])
def my_reviews(db: Session = Depends(get_db), identity: CustomerIdentity = Depends(require_customer)):
    return (
        db.query(Review)
        .filter(Review.customer_id == identity.customer_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )


# ============================================================
# 🌐 Öffentlich: nur freigegebene + öffentliche
# ============================================================
@router.get("/reviews", response_model=List[PublicReview])
def public_reviews(db: Session = Depends(get_db)):
    reviews = (
        db.query(Review)
        .filter(Review.is_approved.is_(True), Review.is_public.is_(True))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return [
        PublicReview(
            id=r.id,
            rating=r.rating,
            title=r.title,
            content=r.content,
            customer_name=r.customer.name if r.customer else None,
            company=r.customer.company if r.customer else None,
            project_type=label(PROJECT_TYPE_LABELS, r.request.project_type) if r.request else None,
            created_at=r.created_at,
        )
        for r in reviews
    ]


# ============================================================
# 🔐 Admin: Moderation
# ============================================================
@router.get("/admin/reviews", response_model=List[ReviewOut])
def admin_reviews(
    pending: bool = False,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    query = db.query(Review)
    if pending:
        query = query.filter(Review.is_approved.is_(False))
    return query.order_by(Review.created_at.desc(), Review.id.desc()).all()


@router.put("/admin/reviews/{review_id}", response_model=ReviewOut)
def moderate_review(
    review_id: int,
    data: ReviewModerate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Bewertung nicht gefunden")
    if data.is_approved is not None:
        review.is_approved = data.is_approved
    if data.is_public is not None:
        review.is_public = data.is_public
    db.commit()
    db.refresh(review)
    return review


@router.delete("/admin/reviews/{review_id}")
def delete_review(review_id: int, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Bewertung nicht gefunden")
    db.delete(review)
    db.commit()
    return {"success": True}
