from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

ROLES = ("user", "seller", "admin")


def is_known_role(role: object) -> bool:
    return isinstance(role, str) and role in ROLES


@dataclass(frozen=True)
class CallerIdentity:
    id: str
    role: str
    token_expiry: datetime

    def has_any_role(self, allowed: Iterable[str]) -> bool:
        return self.role in set(allowed)
