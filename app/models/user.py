"""
User identity types for QuizForge

Accounts live in the auth service; this service only sees resolved identities.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class UserRole(str, enum.Enum):
    """User roles"""
    CREATOR = "creator"
    TAKER = "taker"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as reported by the identity provider"""
    id: str
    role: UserRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
