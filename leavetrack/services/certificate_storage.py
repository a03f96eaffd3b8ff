"""
On-disk storage for leave certificates (medical notes and similar).
Files are stored under generated names; the original filename lives on the Leave row.
"""
import logging
import mimetypes
import os
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from leavetrack.core.config import settings
from leavetrack.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".jpg", ".jpeg", ".png"}


class CertificateStorage:
    def __init__(self, base_dir: Optional[str] = None, max_size: Optional[int] = None):
        self.base_dir = Path(base_dir or settings.certificate_dir)
        self.max_size = max_size or settings.max_certificate_size

    def save(self, leave_id: int, filename: str, content: bytes) -> str:
        """Writes the file and returns its stored name."""
        ext = os.path.splitext(filename or "")[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                f"Unsupported certificate type '{ext or filename}'",
                details={"allowed": sorted(ALLOWED_EXTENSIONS)}
            )
        if not content:
            raise ValidationError("Certificate file is empty")
        if len(content) > self.max_size:
            raise ValidationError(
                "Certificate file is too large",
                details={"max_bytes": self.max_size, "size": len(content)}
            )

        self.base_dir.mkdir(parents=True, exist_ok=True)
        stored_name = f"leave-{leave_id}-{uuid.uuid4().hex}{ext}"
        (self.base_dir / stored_name).write_bytes(content)
        logger.info(f"Stored certificate for leave {leave_id}", extra={"stored_name": stored_name, "size": len(content)})
        return stored_name

    def path_for(self, stored_name: str) -> Path:
        path = self.base_dir / stored_name
        if not path.is_file():
            raise NotFoundError("Certificate file not found")
        return path

    def delete(self, stored_name: Optional[str]):
        if not stored_name:
            return
        path = self.base_dir / stored_name
        if path.is_file():
            path.unlink()
            logger.info("Deleted certificate file", extra={"stored_name": stored_name})
        else:
            logger.warning("Certificate file already missing", extra={"stored_name": stored_name})


def media_type_for(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


def content_disposition(filename: str) -> str:
    """
    Both forms: a plain ASCII filename for old clients and the RFC 5987
    filename* form carrying the exact UTF-8 name.
    """
    ascii_name = filename.encode("ascii", "ignore").decode("ascii").replace('"', "") or "certificate"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
