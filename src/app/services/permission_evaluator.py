"""
Permission Evaluator

Resolves role -> capability set. The table is frozen when the evaluator is
built and never changes for the evaluator's lifetime.
"""

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from src.domain.entities import DEFAULT_ROLE_CAPABILITIES, Capability

logger = logging.getLogger(__name__)

CapabilityLike = Union[Capability, str]

_EMPTY: frozenset = frozenset()


def _key(value) -> str:
    # Accepts enum members (Capability, MembershipRole) as well as raw strings
    return str(getattr(value, "value", value))


class PermissionEvaluator:
    """
    Pure capability checks against an immutable role table.

    Unknown roles resolve to the empty capability set.
    """

    def __init__(self, table: Optional[Mapping[str, Iterable[CapabilityLike]]] = None):
        source = DEFAULT_ROLE_CAPABILITIES if table is None else table
        self._table = MappingProxyType(
            {
                _key(role): frozenset(_key(c) for c in capabilities)
                for role, capabilities in source.items()
            }
        )

    @classmethod
    def from_config(cls, config) -> "PermissionEvaluator":
        """
        Build the evaluator for an application session.

        ROLE_CAPABILITIES in config replaces the default entry for every role
        it names; roles it does not name keep their defaults.
        """
        overrides = getattr(config, "ROLE_CAPABILITIES", None) or {}
        table = dict(DEFAULT_ROLE_CAPABILITIES)
        for role, capabilities in overrides.items():
            table[role] = frozenset(_key(c) for c in capabilities)
        if overrides:
            logger.info(f"Role capability overrides loaded for: {sorted(overrides)}")
        return cls(table)

    @property
    def table(self) -> Mapping[str, frozenset]:
        return self._table

    def capabilities_for(self, role: Optional[str]) -> frozenset:
        if role is None:
            return _EMPTY
        return self._table.get(_key(role), _EMPTY)

    def can(self, role: Optional[str], capability: CapabilityLike) -> bool:
        return _key(capability) in self.capabilities_for(role)

    def can_any(self, role: Optional[str], capabilities: Iterable[CapabilityLike]) -> bool:
        granted = self.capabilities_for(role)
        return any(_key(c) in granted for c in capabilities)

    def can_all(self, role: Optional[str], capabilities: Iterable[CapabilityLike]) -> bool:
        granted = self.capabilities_for(role)
        return all(_key(c) in granted for c in capabilities)
