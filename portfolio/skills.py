# portfolio/skills.py

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import Skill
from portfolio.permissions import Admin, require_admin

router = APIRouter(prefix="/api", tags=["Skills"])

SkillCategory = Literal["frontend", "backend", "database", "tools", "other"]


class SkillIn(BaseModel):
    name: str
    icon: Optional[str] = None
    category: SkillCategory = "other"
    level: int = Field(default=80, ge=0, le=100)
    color: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class SkillUpdate(BaseModel):
    name: Optional[str] = None
    icon: Optional[str] = None
    category: Optional[SkillCategory] = None
    level: Optional[int] = Field(default=None, ge=0, le=100)
    color: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class SkillOut(BaseModel):
    id: int
    name: str
    icon: Optional[str] = None
    category: Optional[str] = None
    level: int
    color: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


@router.get("/skills", response_model=List[SkillOut])
def public_skills(db: Session = Depends(get_db)):
    return (
        db.query(Skill)
        .filter(Skill.is_active.is_(True))
        .order_by(Skill.sort_order.asc(), Skill.id.asc())
        .all()
    )


@router.get("/admin/skills", response_model=List[SkillOut])
def admin_skills(db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    return db.query(Skill).order_by(Skill.category.asc(), Skill.sort_order.asc(), Skill.id.asc()).all()


@router.post("/admin/skills", response_model=SkillOut)
def create_skill(data: SkillIn, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    skill = Skill(**data.model_dump())
    db.add(skill)
    db.commit()
    db.refresh(skill)
    return skill


@router.put("/admin/skills/{skill_id}", response_model=SkillOut)
def update_skill(
    skill_id: int,
    data: SkillUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    skill = db.get(Skill, skill_id)
    if not skill:
        raise HTTPException(status_code=404, detail="Skill nicht gefunden")
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(skill, field, value)
    db.commit()
    db.refresh(skill)
    return skill


@router.delete("/admin/skills/{skill_id}")
def delete_skill(skill_id: int, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    skill = db.get(Skill, skill_id)
    if not skill:
        raise HTTPException(status_code=404, detail="Skill nicht gefunden")
    db.delete(skill)
    db.commit()
    return {"success": True}
