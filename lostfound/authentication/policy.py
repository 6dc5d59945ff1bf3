"""
Admin capability check, injected wherever the engine needs to ask "is this actor an admin?".
"""

from typing import Iterable


class AdminPolicy:
    def __init__(self, admin_emails: Iterable[str] = ()):
        self._admins = frozenset(e.strip().lower() for e in admin_emails if e and e.strip())

    def is_admin(self, email: str) -> bool:
        return bool(email) and email.strip().lower() in self._admins

    def __contains__(self, email: str) -> bool:
        return self.is_admin(email)
