from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List

import structlog

from sheetsync.exceptions import NotFoundError
from sheetsync.schemas import CommandOutcome
from sheetsync.services.importer import ImportContext, clear_data, run_import

log = structlog.get_logger(__name__)

CommandHandler = Callable[[ImportContext], Awaitable[CommandOutcome]]


class CommandRegistry:
    """Maps operator command identifiers to their handlers.

    Dispatch is serialized: a second command waits for the running one.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, CommandHandler] = {}
        self._labels: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    def register(self, command_id: str, label: str) -> Callable[[CommandHandler], CommandHandler]:
        def decorator(handler: CommandHandler) -> CommandHandler:
            if command_id in self._handlers:
                raise ValueError(f"Command {command_id!r} is already registered")
            self._handlers[command_id] = handler
            self._labels[command_id] = label
            return handler
        return decorator

    def available(self) -> List[Dict[str, str]]:
        return [{"id": cid, "label": self._labels[cid]} for cid in self._handlers]

    async def dispatch(self, command_id: str, ctx: ImportContext) -> CommandOutcome:
        handler = self._handlers.get(command_id)
        if handler is None:
            raise NotFoundError(
                f"Unknown command {command_id!r}",
                {"available": sorted(self._handlers)},
            )
        async with self._lock:
            log.info("command.dispatch", command=command_id, triggered_by=ctx.triggered_by)
            return await handler(ctx)


registry = CommandRegistry()
registry.register("run_import", "Run Import (Config)")(run_import)
registry.register("clear_data", "Clear Data")(clear_data)
