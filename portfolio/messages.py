# portfolio/messages.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from portfolio.config import BASE_URL, REQUEST_UPLOAD_DIR
from portfolio.database import get_db
from portfolio.email_sender import admin_recipient, notify
from portfolio.models import Message, ProjectRequest, RequestFile, SenderType
from portfolio.permissions import (
    Admin,
    Identity,
    ensure_owner,
    require_admin_or_customer,
)
from portfolio.settings import get_bool_setting
from portfolio.utils.logging_utils import log_activity
from portfolio.utils.uploads import (
    ATTACHMENT_EXTENSIONS,
    ATTACHMENT_MAX_SIZE,
    has_upload,
    save_upload,
)

router = APIRouter(prefix="/api/requests", tags=["Nachrichten"])


def message_to_dict(msg: Message) -> dict:
    attachment = msg.attachment
    return {
        "id": msg.id,
        "request_id": msg.request_id,
        "sender_type": msg.sender_type,
        "sender_id": msg.sender_id,
        "content": msg.content,
        "created_at": msg.created_at,
        "file_path": attachment.file_path if attachment else None,
        "original_name": attachment.original_name if attachment else None,
    }


def file_to_dict(f: RequestFile) -> dict:
    return {
        "id": f.id,
        "request_id": f.request_id,
        "message_id": f.message_id,
        "original_name": f.original_name,
        "file_path": f.file_path,
        "uploaded_by": f.uploaded_by,
        "created_at": f.created_at,
    }


def load_request_for(db: Session, request_id: int, identity: Identity) -> ProjectRequest:
    req = db.get(ProjectRequest, request_id)
    if not req:
        raise HTTPException(status_code=404, detail="Anfrage nicht gefunden")
    ensure_owner(identity, req.customer_id)
    return req


# 💬 Verlauf einer Anfrage (komplett, älteste zuerst)
@router.get("/{request_id}/messages")
def list_messages(
    request_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin_or_customer),
):
    req = load_request_for(db, request_id, identity)
    return [message_to_dict(m) for m in req.messages]


# ✉️ Neue Nachricht (Text, Datei oder beides)
@router.post("/{request_id}/messages")
def post_message(
    request_id: int,
    content: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin_or_customer),
):
    req = load_request_for(db, request_id, identity)

    text = (content or "").strip()
    with_file = has_upload(file)
    if not text and not with_file:
        raise HTTPException(status_code=400, detail="Nachricht oder Datei erforderlich")

    if isinstance(identity, Admin):
        sender_type, sender_id = SenderType.admin, None
    else:
        sender_type, sender_id = SenderType.customer, identity.customer_id

    msg = Message(
        request_id=req.id,
        sender_type=sender_type,
        sender_id=sender_id,
        content=text or None,
    )

    if with_file:
        url = save_upload(file, REQUEST_UPLOAD_DIR, ATTACHMENT_EXTENSIONS, ATTACHMENT_MAX_SIZE)
        msg.attachment = RequestFile(
            request_id=req.id,
            filename=url.rsplit("/", 1)[-1],
            original_name=file.filename,
            file_path=url,
            uploaded_by=sender_type,
        )

    db.add(msg)
    db.commit()
    db.refresh(msg)

    if sender_type == SenderType.customer:
        log_activity(db, "message_received", f"Neue Nachricht zu Anfrage #{req.id}")

    if get_bool_setting(db, "notify_new_message"):
        preview = text or f"Datei: {file.filename}"
        if sender_type == SenderType.admin:
            notify(
                db,
                req.customer.email if req.customer else None,
                f"Neue Nachricht zu Ihrer Anfrage #{req.id}",
                preview,
                email_type="new_message",
                action_url=f"{BASE_URL}/kunde/",
                action_text="Nachricht lesen",
            )
        else:
            notify(
                db,
                admin_recipient(db),
                f"Neue Kundennachricht zu Anfrage #{req.id}",
                preview,
                email_type="new_message",
                action_url=f"{BASE_URL}/admin/",
                action_text="Im Admin-Bereich öffnen",
            )

    return {"success": True, "message": message_to_dict(msg)}


# 📎 Alle Anhänge einer Anfrage
@router.get("/{request_id}/files")
def list_files(
    request_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin_or_customer),
):
    req = load_request_for(db, request_id, identity)
    return [file_to_dict(f) for f in sorted(req.files, key=lambda f: f.id)]
