"""
Per-request session context.

Holds the caller's access token and an invalidation callback. The case API
client invalidates the session on 401/403 so the API layer can drop cached
data for that token and send the UI back to the login view.
"""
from __future__ import annotations

from typing import Callable, Optional

from writdesk.core.config import settings


class SessionContext:
    def __init__(
        self,
        token: Optional[str] = None,
        email: Optional[str] = None,
        on_invalidate: Optional[Callable[["SessionContext"], None]] = None,
        login_path: Optional[str] = None,
    ) -> None:
        self.token = (token or "").strip() or None
        self.email = email
        self.login_path = login_path or settings.LOGIN_PATH
        self._on_invalidate = on_invalidate
        self.invalidated = False
        # Token as it was when the session was opened; used for cache eviction.
        self.original_token = self.token

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and not self.invalidated

    @property
    def login_redirect(self) -> Optional[str]:
        return self.login_path if self.invalidated else None

    def invalidate(self) -> None:
        """Clear the token and fire the callback once."""
        if self.invalidated:
            return
        self.invalidated = True
        self.token = None
        if self._on_invalidate is not None:
            self._on_invalidate(self)

    def __repr__(self) -> str:
        return f"SessionContext(email={self.email!r}, authenticated={self.is_authenticated})"
