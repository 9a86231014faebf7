"""Persistence collaborator shapes and the best-effort side channel.

History and usage storage live outside the engine. The engine only hands
records over; a failed save is logged and never changes an operation's result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

from .model import PromptRecord, UsageRecord

logger = logging.getLogger(__name__)


class PromptStore(Protocol):
    """Record store for prompt history snapshots."""

    async def save(self, record: PromptRecord) -> str:
        """Store a record and return its id."""
        ...

    async def fetch(self, record_id: str) -> Optional[PromptRecord]:
        ...

    async def list(self) -> list[PromptRecord]:
        """All records, newest first."""
        ...

    async def update(self, record_id: str, updates: dict[str, Any]) -> Optional[PromptRecord]:
        ...

    async def delete(self, record_id: str) -> bool:
        ...


class UsageSink(Protocol):
    """Append-only destination for usage records."""

    async def record(self, usage: UsageRecord) -> None:
        ...


class InMemoryPromptStore:
    """Process-local PromptStore, newest record first."""

    def __init__(self) -> None:
        self._records: list[PromptRecord] = []

    async def save(self, record: PromptRecord) -> str:
        self._records.insert(0, record)
        return record.id

    async def fetch(self, record_id: str) -> Optional[PromptRecord]:
        return next((r for r in self._records if r.id == record_id), None)

    async def list(self) -> list[PromptRecord]:
        return list(self._records)

    async def update(self, record_id: str, updates: dict[str, Any]) -> Optional[PromptRecord]:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                updated = PromptRecord.model_validate({**record.model_dump(), **updates, "id": record_id})
                self._records[index] = updated
                return updated
        return None

    async def delete(self, record_id: str) -> bool:
        remaining = [r for r in self._records if r.id != record_id]
        deleted = len(remaining) != len(self._records)
        self._records = remaining
        return deleted


class InMemoryUsageSink:
    """Process-local UsageSink."""

    def __init__(self) -> None:
        self.records: list[UsageRecord] = []

    async def record(self, usage: UsageRecord) -> None:
        self.records.append(usage)


class SideChannel:
    """Schedules fire-and-forget persistence work.

    Tasks are tracked so they are not garbage collected mid-flight and so
    tests can ``await drain()``.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def emit(self, description: str, work: Callable[[], Awaitable[Any]]) -> None:
        async def _run() -> None:
            try:
                await work()
            except Exception as e:
                logger.warning("Best-effort %s failed: %s", description, e, exc_info=True)

        task = asyncio.get_running_loop().create_task(_run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every pending side-channel task."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
