"""
Result sinks and the search notification channel.

A search walk hands every candidate entry to a ResultSink. The sink decides
whether the entry is accepted under the result limit; the batch sink keeps
entries for a final sorted return, the streaming sink only counts them and
pushes each one straight out through a NotificationChannel.

``try_accept`` and ``count`` never suspend, so under one event loop each
call is an atomic critical section.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Tuple

from ..models.entries import FileSystemEntry, sort_entries


logger = logging.getLogger(__name__)


class SearchEvent(Enum):
    """Messages emitted by a streaming search."""
    STARTED = "search-started"
    RESULT = "search-result"
    COMPLETED = "search-completed"


class NotificationChannel(Protocol):
    """Anything that can receive streaming search messages."""

    def emit(self, event: SearchEvent, payload: Optional[FileSystemEntry] = None) -> None:
        ...


def emit_safely(channel: NotificationChannel, event: SearchEvent,
                payload: Optional[FileSystemEntry] = None) -> bool:
    """
    Emit a message, logging instead of raising if the consumer fails.

    Returns:
        True if the channel accepted the message
    """
    try:
        channel.emit(event, payload)
        return True
    except Exception as e:
        logger.warning(f"Failed to emit {event.value}: {e}")
        return False


class CallbackChannel:
    """Forwards every message to a callback as ``(event_name, payload_dict)``."""

    def __init__(self, callback: Callable[[str, Optional[dict]], Any]):
        self.callback = callback

    def emit(self, event: SearchEvent, payload: Optional[FileSystemEntry] = None) -> None:
        self.callback(event.value, payload.to_dict() if payload is not None else None)


class QueueChannel:
    """
    Puts ``(event, payload)`` tuples on an asyncio queue.

    Consumers can drain the queue until they see SearchEvent.COMPLETED.
    """

    def __init__(self, queue: Optional[asyncio.Queue] = None):
        self.queue = queue if queue is not None else asyncio.Queue()

    def emit(self, event: SearchEvent, payload: Optional[FileSystemEntry] = None) -> None:
        self.queue.put_nowait((event, payload))

    def drain(self) -> List[Tuple[SearchEvent, Optional[FileSystemEntry]]]:
        """Remove and return every message currently queued."""
        messages = []
        while not self.queue.empty():
            messages.append(self.queue.get_nowait())
        return messages


class ResultSink(ABC):
    """Bounded destination for accepted search results."""

    def __init__(self, max_results: int):
        self.max_results = max_results

    @abstractmethod
    def count(self) -> int:
        """Number of entries accepted so far."""

    @abstractmethod
    def _record(self, entry: FileSystemEntry) -> None:
        """Store or forward one accepted entry."""

    def is_full(self) -> bool:
        return self.count() >= self.max_results

    def try_accept(self, entry: FileSystemEntry) -> bool:
        """
        Accept an entry unless the sink already holds ``max_results``.

        Returns:
            True if the entry was recorded, False if it was discarded
        """
        if self.is_full():
            return False
        self._record(entry)
        return True


class CollectingSink(ResultSink):
    """Keeps accepted entries for a single sorted return at the end."""

    def __init__(self, max_results: int):
        super().__init__(max_results)
        self._entries: List[FileSystemEntry] = []

    def count(self) -> int:
        return len(self._entries)

    def _record(self, entry: FileSystemEntry) -> None:
        self._entries.append(entry)

    def results(self) -> List[FileSystemEntry]:
        """Accepted entries, directories first, then case-insensitive name."""
        return sort_entries(self._entries)


class StreamingSink(ResultSink):
    """Counts accepted entries and emits each one as it is accepted."""

    def __init__(self, max_results: int, channel: NotificationChannel):
        super().__init__(max_results)
        self.channel = channel
        self._count = 0

    def count(self) -> int:
        return self._count

    def _record(self, entry: FileSystemEntry) -> None:
        self._count += 1
        # The entry counts even if the consumer fails
        emit_safely(self.channel, SearchEvent.RESULT, entry)
