from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping, Optional

from catalog_api.core.auth.models import is_known_role
from catalog_api.core.errors import ConfigurationError


class IdentityStore(ABC):
    @abstractmethod
    async def lookup_role(self, identity_id: str) -> Optional[str]:
        """Current role of the identity, or None if it no longer exists."""


class InMemoryIdentityStore(IdentityStore):
    def __init__(self, roles: Optional[Mapping[str, str]] = None):
        self._roles: Dict[str, str] = {}
        for identity_id, role in (roles or {}).items():
            self.set_role(identity_id, role)

    @classmethod
    def from_documents(cls, docs: Iterable[Dict[str, Any]]) -> "InMemoryIdentityStore":
        return cls({str(d.get("id")): d.get("role") for d in docs})

    def set_role(self, identity_id: str, role: str) -> None:
        if not is_known_role(role):
            raise ConfigurationError(f"Unknown role for identity {identity_id}: {role!r}")
        self._roles[str(identity_id)] = role

    async def lookup_role(self, identity_id: str) -> Optional[str]:
        return self._roles.get(str(identity_id))
