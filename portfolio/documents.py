# portfolio/documents.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from portfolio.config import DOCUMENT_UPLOAD_DIR
from portfolio.database import get_db
from portfolio.models import Customer, CustomerDocument
from portfolio.permissions import Admin, CustomerIdentity, require_admin, require_customer
from portfolio.utils.logging_utils import log_activity
from portfolio.utils.uploads import (
    DOCUMENT_EXTENSIONS,
    DOCUMENT_MAX_SIZE,
    delete_upload,
    has_upload,
    save_upload,
    url_to_path,
)

# -----------------------------------------------------
# ROUTER
# -----------------------------------------------------
router = APIRouter(prefix="/api", tags=["Dokumente"])


class DocumentOut(BaseModel):
    id: int
    customer_id: int
    title: Optional[str] = None
    original_name: str
    file_path: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def send_document(doc: CustomerDocument) -> FileResponse:
    path = url_to_path(doc.file_path)
    if path is None or not path.exists():
        raise HTTPException(status_code=404, detail="Datei nicht gefunden")
    return FileResponse(path, filename=doc.original_name)


# -----------------------------------------------------
# 🔐 Admin: Dokumente je Kunde
# -----------------------------------------------------
@router.get("/customers/{customer_id}/documents", response_model=List[DocumentOut])
def list_customer_documents(
    customer_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    return (
        db.query(CustomerDocument)
        .filter(CustomerDocument.customer_id == customer_id)
        .order_by(CustomerDocument.created_at.desc(), CustomerDocument.id.desc())
        .all()
    )


@router.post("/customers/{customer_id}/documents", response_model=DocumentOut)
def upload_customer_document(
    customer_id: int,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    customer = db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Kunde nicht gefunden")
    if not has_upload(file):
        raise HTTPException(status_code=400, detail="Keine Datei hochgeladen")

    url = save_upload(file, DOCUMENT_UPLOAD_DIR, DOCUMENT_EXTENSIONS, DOCUMENT_MAX_SIZE)
    doc = CustomerDocument(
        customer_id=customer.id,
        title=title or file.filename,
        filename=url.rsplit("/", 1)[-1],
        original_name=file.filename,
        file_path=url,
    )
    db.add(doc)
    db.commit()
    db.refresh(doc)

    log_activity(db, "document_uploaded", f"Dokument für {customer.email} hochgeladen: {doc.title}")
    return doc


@router.delete("/documents/{document_id}")
def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    doc = db.get(CustomerDocument, document_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Dokument nicht gefunden")
    url = doc.file_path
    db.delete(doc)
    db.commit()
    delete_upload(url)
    return {"success": True}


# -----------------------------------------------------
# 👤 Kunde: eigene Dokumente
# -----------------------------------------------------
@router.get("/customer/documents", response_model=List[DocumentOut])
def my_documents(
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    return (
        db.query(CustomerDocument)
        .filter(CustomerDocument.customer_id == identity.customer_id)
        .order_by(CustomerDocument.created_at.desc(), CustomerDocument.id.desc())
        .all()
    )


@router.get("/customer/documents/{document_id}/download")
def download_my_document(
    document_id: int,
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    doc = db.get(CustomerDocument, document_id)
    if not doc or doc.customer_id != identity.customer_id:
        raise HTTPException(status_code=404, detail="Dokument nicht gefunden")
    return send_document(doc)
