"""
Actors and base authority (``inventory_kernel.domain.authority``).

Responsibility
--------------
Describes *who* is calling the ledger and answers the one authorization
question the kernel asks: may this actor act on this base?

The kernel stays identity-agnostic: the caller's auth layer builds the
``Actor`` (id, role, assigned bases) and may inject its own
``BaseAuthority``.  ``RoleBaseAuthority`` is the default and mirrors the
deployment's three roles:

* ``admin`` -- every base.
* ``base_commander`` -- the bases they are assigned to.
* ``logistics_officer`` -- the bases they are assigned to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable
from uuid import UUID


class Role(str, Enum):
    ADMIN = "admin"
    BASE_COMMANDER = "base_commander"
    LOGISTICS_OFFICER = "logistics_officer"


@dataclass(frozen=True)
class Actor:
    """An authenticated caller."""

    actor_id: UUID
    role: Role
    base_ids: frozenset[UUID] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_commander(self) -> bool:
        return self.role == Role.BASE_COMMANDER


@runtime_checkable
class BaseAuthority(Protocol):
    """Injected authorization check used by the ledger."""

    def can_act_on_base(self, actor: Actor, base_id: UUID) -> bool: ...


class RoleBaseAuthority:
    """Admins act everywhere; everyone else only on their assigned bases."""

    def can_act_on_base(self, actor: Actor, base_id: UUID) -> bool:
        if actor.is_admin:
            return True
        return base_id in actor.base_ids
