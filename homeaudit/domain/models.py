from __future__ import annotations

from dataclasses import dataclass

from homeaudit.core.auth import Role


@dataclass(slots=True)
class User:
    """Represents an authenticated actor within the system."""

    user_id: str
    role: Role
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_officer(self) -> bool:
        return self.role is Role.OFFICER

    @property
    def is_homeowner(self) -> bool:
        return self.role is Role.HOMEOWNER
