"""
Role Registry

Capability lookup from principal to granted roles. Checks are direct
membership queries; roles do not inherit from one another.
"""

from __future__ import annotations

from enum import Enum

from core.schemas.errors import UnauthorizedException


class Role(str, Enum):
    """Roles recognised by the ledger."""
    OWNER = "OWNER"   # super-admin: fees, pause, recovery, role grants
    ADMIN = "ADMIN"   # operator: executes withdrawals


class RoleRegistry:
    """
    principal -> set of roles.

    Principals are compared case-insensitively.
    """

    def __init__(self) -> None:
        self._grants: dict[str, set[Role]] = {}

    @staticmethod
    def _key(principal: str) -> str:
        return principal.lower() if isinstance(principal, str) else str(principal)

    def grant(self, principal: str, role: Role) -> bool:
        """Grant role; returns False if it was already held."""
        roles = self._grants.setdefault(self._key(principal), set())
        if role in roles:
            return False
        roles.add(role)
        return True

    def revoke(self, principal: str, role: Role) -> bool:
        """Revoke role; returns False if it was not held."""
        roles = self._grants.get(self._key(principal))
        if not roles or role not in roles:
            return False
        roles.discard(role)
        if not roles:
            del self._grants[self._key(principal)]
        return True

    def has_role(self, principal: str, role: Role) -> bool:
        return role in self._grants.get(self._key(principal), ())

    def roles_of(self, principal: str) -> frozenset[Role]:
        return frozenset(self._grants.get(self._key(principal), ()))

    def members(self, role: Role) -> list[str]:
        return sorted(p for p, roles in self._grants.items() if role in roles)

    def require(self, principal: str, role: Role) -> None:
        """
        Raises:
            UnauthorizedException: If principal does not hold role
        """
        if not self.has_role(principal, role):
            raise UnauthorizedException(str(principal), role.value)


__all__ = ["Role", "RoleRegistry"]
