from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

# Slash command (CHAT_INPUT) application command type
CHAT_INPUT = 1

Executor = Callable[..., Awaitable[None]]


@dataclass(frozen=True)
class CommandDescriptor:
    """
    A validated slash command.

    Identity is name. options is the platform's JSON option schema, kept as
    plain dicts so the payload is exactly what gets registered.
    """

    name: str
    description: str
    executor: Executor
    options: Tuple[Dict[str, Any], ...] = ()
    cooldown: float = 3.0
    default_member_permissions: Optional[str] = None
    dm_permission: Optional[bool] = None
    source: str = field(default="", compare=False)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": CHAT_INPUT,
            "name": self.name,
            "description": self.description,
            "options": [dict(o) for o in self.options],
        }
        if self.default_member_permissions is not None:
            payload["default_member_permissions"] = self.default_member_permissions
        if self.dm_permission is not None:
            payload["dm_permission"] = self.dm_permission
        return payload


@dataclass(frozen=True)
class EventDescriptor:
    """A validated gateway event handler. once=True fires at most one time."""

    name: str
    handler: Callable[..., Any]
    once: bool = False
    source: str = field(default="", compare=False)


__all__ = ["CHAT_INPUT", "CommandDescriptor", "EventDescriptor", "Executor"]
