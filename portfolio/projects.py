# portfolio/projects.py
from __future__ import annotations

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from portfolio.config import UPLOAD_DIR
from portfolio.database import get_db
from portfolio.models import Project, ProjectStatus
from portfolio.permissions import Admin, require_admin
from portfolio.utils.logging_utils import log_activity
from portfolio.utils.uploads import (
    IMAGE_EXTENSIONS,
    IMAGE_MAX_SIZE,
    delete_upload,
    has_upload,
    save_upload,
)

router = APIRouter(prefix="/api", tags=["Projekte"])


# -----------------------------------------------------
# HELPER
# -----------------------------------------------------
def parse_tags(raw: Optional[str]) -> List[str]:
    """Akzeptiert JSON-Liste oder kommagetrennten Text."""
    if not raw:
        return []
    raw = raw.strip()
    if raw.startswith("["):
        try:
            values = json.loads(raw)
        except ValueError:
            raise HTTPException(status_code=400, detail="Ungültige Tags")
        return [str(v).strip() for v in values if str(v).strip()]
    return [t.strip() for t in raw.split(",") if t.strip()]


def decode_tags(value: Optional[str]) -> List[str]:
    if not value:
        return []
    try:
        tags = json.loads(value)
    except ValueError:
        return []
    return tags if isinstance(tags, list) else []


def project_to_dict(project: Project) -> dict:
    return {
        "id": project.id,
        "title": project.title,
        "description": project.description,
        "image": project.image,
        "tags": decode_tags(project.tags),
        "link": project.link,
        "status": project.status,
        "sort_order": project.sort_order,
        "progress": project.progress,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


def parse_status(value: Optional[str]) -> Optional[ProjectStatus]:
    if value is None or value == "":
        return None
    try:
        return ProjectStatus(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unbekannter Status: {value}")


def clamp_progress(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    return max(0, min(100, value))


def get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Projekt nicht gefunden")
    return project


def store_image(image: UploadFile) -> str:
    return save_upload(image, UPLOAD_DIR, IMAGE_EXTENSIONS, IMAGE_MAX_SIZE, prefix="project-")


# -----------------------------------------------------
# 🌐 Öffentlich
# -----------------------------------------------------
@router.get("/projects")
def list_projects(db: Session = Depends(get_db)):
    projects = db.query(Project).order_by(Project.sort_order.asc(), Project.id.desc()).all()
    return [project_to_dict(p) for p in projects]


@router.get("/projects/{project_id}")
def get_project(project_id: int, db: Session = Depends(get_db)):
    return project_to_dict(get_project_or_404(db, project_id))


# -----------------------------------------------------
# 🔐 Admin
# -----------------------------------------------------
@router.post("/projects")
def create_project(
    title: str = Form(...),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    link: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    sort_order: int = Form(0),
    progress: int = Form(0),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    if not title.strip():
        raise HTTPException(status_code=400, detail="Titel fehlt")

    project = Project(
        title=title.strip(),
        description=description,
        tags=json.dumps(parse_tags(tags)),
        link=link,
        status=parse_status(status) or ProjectStatus.completed,
        sort_order=sort_order,
        progress=clamp_progress(progress),
    )
    if has_upload(image):
        project.image = store_image(image)

    db.add(project)
    db.commit()
    db.refresh(project)

    log_activity(db, "project_created", f"Projekt erstellt: {project.title}")
    return {"success": True, "id": project.id, "project": project_to_dict(project)}


@router.put("/projects/{project_id}")
def update_project(
    project_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    link: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    sort_order: Optional[int] = Form(None),
    progress: Optional[int] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    project = get_project_or_404(db, project_id)

    # nicht übergebene Felder behalten ihren Wert
    if title is not None and title.strip():
        project.title = title.strip()
    if description is not None:
        project.description = description
    if tags is not None:
        project.tags = json.dumps(parse_tags(tags))
    if link is not None:
        project.link = link
    new_status = parse_status(status)
    if new_status is not None:
        project.status = new_status
    if sort_order is not None:
        project.sort_order = sort_order
    if progress is not None:
        project.progress = clamp_progress(progress)

    if has_upload(image):
        old_image = project.image
        project.image = store_image(image)
        delete_upload(old_image)

    db.commit()
    db.refresh(project)
    return {"success": True, "project": project_to_dict(project)}


@router.delete("/projects/{project_id}")
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    project = get_project_or_404(db, project_id)
    image = project.image
    title = project.title

    db.delete(project)
    db.commit()
    delete_upload(image)

    log_activity(db, "project_deleted", f"Projekt gelöscht: {title}")
    return {"success": True}
