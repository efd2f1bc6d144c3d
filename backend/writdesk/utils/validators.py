"""
Custom validators
"""
import re
from typing import Iterable, Optional

from writdesk.core.config import settings
from writdesk.utils.exceptions import AttachmentValidationError


def validate_attachment(
    size: int,
    content_type: Optional[str],
    max_bytes: Optional[int] = None,
    allowed_types: Optional[Iterable[str]] = None,
) -> bool:
    """
    Validate an order-of-proceeding attachment before upload.
    Limit: 250 KB (inclusive); PDF, PNG, JPEG/JPG, XLSX or legacy XLS.
    """
    limit = settings.ATTACHMENT_MAX_BYTES if max_bytes is None else max_bytes
    allowed = [t.lower() for t in (allowed_types or settings.attachment_allowed_types_list)]

    if size > limit:
        raise AttachmentValidationError(f"File size exceeds {limit // 1024} KB limit")

    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime not in allowed:
        raise AttachmentValidationError(
            "Invalid file type. Only PDF, PNG, JPEG, JPG, and Excel files are allowed."
        )
    return True


def validate_email(email: str) -> bool:
    """Validate email format"""
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email or ""))


def is_blank(value) -> bool:
    """True for None and whitespace-only strings"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
