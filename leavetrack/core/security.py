import re
import html
from typing import Optional

from leavetrack.core.exceptions import AccessDeniedError
from leavetrack.models.user import User

def sanitize_input(text: Optional[str]) -> Optional[str]:
    """Basic input sanitization to prevent XSS in free-text fields (leave reasons, names)."""
    if not isinstance(text, str):
        return text
    # Strip script blocks before escaping so their content does not survive as text
    sanitized = re.sub(r'<script.*?>.*?</script>', '', text, flags=re.DOTALL | re.IGNORECASE)
    return html.escape(sanitized.strip(), quote=False)

def ensure_owner_or_admin(current_user: User, owner_id: int):
    """Employees may only touch their own records."""
    if not current_user.is_admin and current_user.id != owner_id:
        raise AccessDeniedError("Unauthorized: this record belongs to another user")
