# portfolio/services.py

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import Project, ProjectStatus, Service
from portfolio.permissions import Admin, require_admin
from portfolio.utils.logging_utils import log_activity

router = APIRouter(prefix="/api", tags=["Leistungen"])


# 📝 Pydantic Schemas
class ServiceIn(BaseModel):
    title: str
    icon: Optional[str] = None
    description: Optional[str] = None
    sort_order: int = 0


class ServiceUpdate(BaseModel):
    title: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None


class ServiceOut(BaseModel):
    id: int
    title: str
    icon: Optional[str] = None
    description: Optional[str] = None
    sort_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class ImportProject(BaseModel):
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    tags: List[str] = []
    link: Optional[str] = None
    status: ProjectStatus = ProjectStatus.completed
    sort_order: int = 0
    progress: int = 0


class ImportPayload(BaseModel):
    projects: List[ImportProject] = []
    services: List[ServiceIn] = []


# 🌐 Öffentlich
@router.get("/services", response_model=List[ServiceOut])
def list_services(db: Session = Depends(get_db)):
    return db.query(Service).order_by(Service.sort_order.asc(), Service.id.asc()).all()


# 🔐 Admin
@router.post("/services", response_model=ServiceOut)
def create_service(
    data: ServiceIn,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    service = Service(**data.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@router.put("/services/{service_id}", response_model=ServiceOut)
def update_service(
    service_id: int,
    data: ServiceUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    service = db.get(Service, service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Leistung nicht gefunden")

    for field, value in data.model_dump(exclude_none=True).items():
        setattr(service, field, value)

    db.commit()
    db.refresh(service)
    return service


@router.delete("/services/{service_id}")
def delete_service(
    service_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    service = db.get(Service, service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Leistung nicht gefunden")
    db.delete(service)
    db.commit()
    return {"success": True}


# 📦 Bestehende Inhalte (z. B. aus der alten statischen Seite) übernehmen
@router.post("/import-existing")
def import_existing(
    payload: ImportPayload,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    for item in payload.projects:
        db.add(Project(
            title=item.title,
            description=item.description,
            image=item.image,
            tags=json.dumps(item.tags),
            link=item.link,
            status=item.status,
            sort_order=item.sort_order,
            progress=max(0, min(100, item.progress)),
        ))
    for item in payload.services:
        db.add(Service(**item.model_dump()))
    db.commit()

    imported = {"projects": len(payload.projects), "services": len(payload.services)}
    log_activity(
        db, "content_imported",
        f"Import: {imported['projects']} Projekte, {imported['services']} Leistungen",
    )
    return {"success": True, "imported": imported}
