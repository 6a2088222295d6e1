"""The calling principal as seen by the order engine: ``(user_id, role)``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from modules.accounts.models import Role


@dataclass(frozen=True)
class Principal:
    user_id: UUID
    role: str

    @classmethod
    def from_user(cls, user: Any) -> Principal:
        return cls(user_id=user.pk, role=getattr(user, "role", Role.CUSTOMER))

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER

    @property
    def is_seller(self) -> bool:
        return self.role == Role.SELLER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
