"""Tool registry for the HR assistant.

Each tool declares the role it needs next to its definition, and one gate
checks that declaration before any handler runs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    user_id: int
    company_id: int
    role: Role
    permissions: frozenset[str] = frozenset()

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class RequiredRole(ABC):
    """Who may call a tool."""

    @abstractmethod
    def allows(self, caller: Caller) -> bool:
        raise NotImplementedError

    @abstractmethod
    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class AnyRole(RequiredRole):
    def allows(self, caller: Caller) -> bool:
        return True

    def describe(self) -> str:
        return "any"


@dataclass(frozen=True)
class AdminOnly(RequiredRole):
    def allows(self, caller: Caller) -> bool:
        return caller.is_admin

    def describe(self) -> str:
        return "admin"


@dataclass(frozen=True)
class ManagerWithPermission(RequiredRole):
    """Managers holding ``permission``; admins always pass."""

    permission: str

    def allows(self, caller: Caller) -> bool:
        if caller.is_admin:
            return True
        return caller.role == Role.MANAGER and self.permission in caller.permissions

    def describe(self) -> str:
        return f"manager:{self.permission}"


ANY = AnyRole()
ADMIN = AdminOnly()


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    required_role: RequiredRole
    handler: Callable[..., Any]
    parameters: dict = field(default_factory=lambda: {"type": "object", "properties": {}})

    def definition(self) -> dict:
        return {
            "type": "function",
            "function": {"name": self.name, "description": self.description, "parameters": self.parameters},
        }


class AuthorizationGate:
    def check(self, caller: Caller, spec: ToolSpec) -> None:
        if not spec.required_role.allows(caller):
            logger.warning(
                "tool_denied",
                extra={"tool": spec.name, "user_id": caller.user_id, "role": caller.role.value, "requires": spec.required_role.describe()},
            )
            raise AuthorizationError(f"You are not allowed to use {spec.name}")


class ToolRegistry:
    def __init__(self, gate: Optional[AuthorizationGate] = None):
        self._gate = gate or AuthorizationGate()
        self._tools: dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> ToolSpec:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec
        return spec

    def names(self) -> list[str]:
        return sorted(self._tools)

    def definitions(self, caller: Optional[Caller] = None) -> list[dict]:
        """Function-calling schemas; limited to the caller's tools when a caller is given."""

        return [
            spec.definition()
            for name, spec in sorted(self._tools.items())
            if caller is None or spec.required_role.allows(caller)
        ]

    def dispatch(self, caller: Caller, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Any:
        spec = self._tools.get(name)
        if spec is None:
            raise NotFoundError(f"Unknown tool: {name}")
        self._gate.check(caller, spec)

        arguments = dict(arguments or {})
        properties = spec.parameters.get("properties", {})
        missing = [p for p in spec.parameters.get("required", []) if arguments.get(p) in (None, "")]
        if missing:
            raise ValidationError(f"Missing arguments for {name}: {', '.join(missing)}")
        unknown = sorted(set(arguments) - set(properties))
        if unknown:
            raise ValidationError(f"Unexpected arguments for {name}: {', '.join(unknown)}")

        logger.info("tool_dispatch", extra={"tool": name, "user_id": caller.user_id, "company_id": caller.company_id})
        return spec.handler(caller, **arguments)
