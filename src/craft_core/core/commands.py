from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .errors import UnknownCommandError
from .types import CommandInvocation, DispatchResult
from .warmup import WarmupScheduler

logger = logging.getLogger(__name__)

CommandHandler = Callable[[CommandInvocation], Any]


@dataclass(frozen=True)
class CommandSpec:
    name: str
    description: str
    handler: CommandHandler
    warmup_seconds: float = 0.0


class CommandDispatcher:
    """Routes an invocation to the handler registered under its exact name."""

    def __init__(self, surface: str, warmups: WarmupScheduler | None = None):
        self.surface = surface
        self._warmups = warmups
        self._commands: dict[str, CommandSpec] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        *,
        description: str = "",
        warmup_seconds: float = 0.0,
    ) -> CommandSpec:
        if name in self._commands:
            raise ValueError(f"{self.surface} command {name!r} is already registered")
        if warmup_seconds > 0 and self._warmups is None:
            raise ValueError("warmup_seconds requires a warmup scheduler")
        spec = CommandSpec(name=name, description=description, handler=handler, warmup_seconds=warmup_seconds)
        self._commands[name] = spec
        logger.debug("Registered %s command %s", self.surface, name)
        return spec

    def get(self, name: str) -> CommandSpec | None:
        return self._commands.get(name)

    def names(self) -> list[str]:
        return sorted(self._commands)

    def dispatch(self, invocation: CommandInvocation) -> DispatchResult:
        spec = self._commands.get(invocation.name)
        if spec is None:
            raise UnknownCommandError(f"unknown {self.surface} command: {invocation.name}")

        if spec.warmup_seconds > 0 and self._warmups is not None:
            status = self._warmups.check(invocation.actor_id, spec.name, spec.warmup_seconds)
            if not status.ready:
                return DispatchResult(status="warmup", remaining_seconds=status.remaining_seconds)

        return DispatchResult(status="ok", value=spec.handler(invocation))
