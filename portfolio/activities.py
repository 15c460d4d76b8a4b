# portfolio/activities.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import Activity
from portfolio.permissions import Admin, require_admin

router = APIRouter(prefix="/api/admin/activities", tags=["Activities"])


class ActivityOut(BaseModel):
    id: int
    type: str
    message: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# --------------------------------------------------------------
# LISTE ALLER AKTIVITÄTEN (neueste zuerst)
# --------------------------------------------------------------
@router.get("", response_model=List[ActivityOut])
def list_activities(
    limit: int = Query(50, ge=1, le=500),
    type: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    query = db.query(Activity)
    if type:
        query = query.filter(Activity.type == type)
    return query.order_by(Activity.created_at.desc(), Activity.id.desc()).limit(limit).all()
