"""
Staging of contact-form attachments.

Files are written to the upload root before the contact workflow runs, so the
workflow only deals with metadata. Whoever stages files owns cleaning them up
when the request fails.
"""
from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass
from datetime import date
from pathlib import PurePath

from werkzeug.datastructures import FileStorage, MultiDict

from app.consultancy.config import MAX_ATTACHMENT_BYTES, MAX_ATTACHMENTS
from app.consultancy.errors import FileUploadError
from app.consultancy.storage import LocalStorage

logger = logging.getLogger(__name__)

ATTACHMENTS_FIELD = "attachments"

# Prefix match, so "image/" admits every image subtype.
ALLOWED_MIME_PREFIXES = (
    "image/",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
)


@dataclass(frozen=True)
class StagedFile:
    file_name: str
    original_name: str
    mime_type: str
    size: int
    storage_key: str
    path: str


def is_allowed_mime(mime_type: str) -> bool:
    return any(mime_type.startswith(prefix) for prefix in ALLOWED_MIME_PREFIXES)


def storage_filename(original_name: str, *, now_ms: int | None = None, suffix: int | None = None) -> str:
    """``Q3 report.pdf`` -> ``Q3_report_1718000000000-123456789.pdf``."""
    pure = PurePath(original_name.replace("\\", "/"))
    ext = re.sub(r"[^A-Za-z0-9.]", "", pure.suffix)
    base = re.sub(r"[^a-zA-Z0-9]", "_", pure.stem) or "file"
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = suffix if suffix is not None else secrets.randbelow(10**9)
    return f"{base}_{now_ms}-{suffix}{ext}"


def _collect(files: MultiDict) -> list[FileStorage]:
    for key in files.keys():
        if key != ATTACHMENTS_FIELD:
            raise FileUploadError("Unexpected file field. Please use the attachments field.")
    # Browsers send an empty part when no file was chosen.
    return [f for f in files.getlist(ATTACHMENTS_FIELD) if f and f.filename]


def stage_uploads(storage: LocalStorage, files: MultiDict) -> list[StagedFile]:
    uploads = _collect(files)
    if len(uploads) > MAX_ATTACHMENTS:
        raise FileUploadError(f"Too many files. Maximum {MAX_ATTACHMENTS} files allowed.")

    staged: list[StagedFile] = []
    today = date.today().isoformat()
    try:
        for f in uploads:
            mime_type = (f.mimetype or "application/octet-stream").strip().lower()
            if not is_allowed_mime(mime_type):
                raise FileUploadError(f"File type {mime_type} is not allowed")

            data = f.stream.read(MAX_ATTACHMENT_BYTES + 1)
            if len(data) > MAX_ATTACHMENT_BYTES:
                raise FileUploadError("File too large. Maximum size is 10MB per file.", status_code=413)

            original_name = PurePath((f.filename or "").replace("\\", "/")).name or "file"
            file_name = storage_filename(original_name)
            key = f"contacts/{today}/{file_name}"
            path = storage.put_bytes(key, data)
            staged.append(
                StagedFile(
                    file_name=file_name,
                    original_name=original_name,
                    mime_type=mime_type,
                    size=len(data),
                    storage_key=key,
                    path=str(path),
                )
            )
    except Exception:
        discard_staged(storage, staged)
        raise
    return staged


def discard_staged(storage: LocalStorage, staged: list[StagedFile]) -> None:
    """Best-effort removal; a file that cannot be removed is logged, not raised."""
    for sf in staged:
        try:
            storage.delete(sf.storage_key)
        except OSError as e:
            logger.error("Could not remove staged upload %s: %s", sf.path, e)
