# portfolio/utils/uploads.py

import logging
import shutil
import uuid
from pathlib import Path
from typing import Iterable, Optional

from fastapi import HTTPException, UploadFile

from portfolio.config import UPLOAD_DIR

logger = logging.getLogger(__name__)

# -----------------------------------------------------
# KONSTANTEN
# -----------------------------------------------------
IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
IMAGE_MAX_SIZE = 5 * 1024 * 1024  # 5MB

ATTACHMENT_EXTENSIONS = IMAGE_EXTENSIONS | {".pdf", ".zip", ".txt", ".doc", ".docx"}
ATTACHMENT_MAX_SIZE = 10 * 1024 * 1024  # 10MB

DOCUMENT_EXTENSIONS = {".pdf", ".jpg", ".jpeg", ".png", ".docx", ".doc", ".txt", ".zip"}
DOCUMENT_MAX_SIZE = 10 * 1024 * 1024  # 10MB

URL_PREFIX = "/uploads"


# -----------------------------------------------------
# HELPER
# -----------------------------------------------------
def is_allowed_file(filename: str, allowed: Iterable[str]) -> bool:
    return Path(filename).suffix.lower() in allowed


def get_file_size(file: UploadFile) -> int:
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    return size


def has_upload(file: Optional[UploadFile]) -> bool:
    """Leere Multipart-Felder kommen teils als UploadFile ohne Namen an."""
    return file is not None and bool(file.filename)


def save_upload(
    file: UploadFile,
    target_dir: Path,
    allowed: Iterable[str],
    max_size: int,
    prefix: str = "",
) -> str:
    """
    Prüft Endung + Größe und speichert unter eindeutigem Namen.
    Gibt die öffentliche URL (/uploads/...) zurück.
    """
    if not is_allowed_file(file.filename or "", allowed):
        raise HTTPException(status_code=400, detail="Dateityp nicht erlaubt")

    if get_file_size(file) > max_size:
        raise HTTPException(
            status_code=400,
            detail=f"Datei zu groß (max. {max_size // (1024 * 1024)} MB)",
        )

    target_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(file.filename).suffix.lower()
    unique_name = f"{prefix}{uuid.uuid4().hex}{suffix}"
    destination = target_dir / unique_name

    with destination.open("wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    relative = destination.relative_to(UPLOAD_DIR).as_posix()
    return f"{URL_PREFIX}/{relative}"


def url_to_path(url: Optional[str]) -> Optional[Path]:
    if not url or not url.startswith(URL_PREFIX + "/"):
        return None
    return UPLOAD_DIR / url[len(URL_PREFIX) + 1:]


def delete_upload(url: Optional[str]) -> None:
    """Entfernt die Datei hinter einer /uploads-URL; fehlende Dateien sind kein Fehler."""
    path = url_to_path(url)
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Datei konnte nicht gelöscht werden: %s (%s)", path, e)
