"""
Recursive search engine for the filesystem browser.

This module walks a directory subtree looking for entries whose names match a
query. The walk is concurrent but bounded: within one directory, matching
entries are enriched in batches, and subdirectories are searched in batches,
each batch joined before the next one starts. A per-search stop flag lets the
first task that hits the result limit wind down the whole walk cooperatively.

One engine serves both result modes; the difference lives entirely in the
ResultSink passed to it.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..models.config import SearchConfig
from ..models.entries import FileSystemEntry
from ..models.search_request import SearchRequest
from .lister import DirectoryChild, scan_children, validate_directory
from .matcher import is_hidden, matches
from .metadata import MetadataEnricher
from .sinks import CollectingSink, NotificationChannel, ResultSink, SearchEvent, StreamingSink, emit_safely


logger = logging.getLogger(__name__)


class SearchState:
    """
    Shared state of one search invocation.

    The stop flag is monotonic: once set it stays set until the invocation
    returns and the state is discarded.
    """

    def __init__(self, sink: ResultSink):
        self.sink = sink
        self._stop = asyncio.Event()
        self._stats = {
            'directories_traversed': 0,
            'directories_skipped': 0,
            'entries_matched': 0,
            'entries_accepted': 0,
            'entries_dropped': 0,
        }

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def record(self, counter: str) -> None:
        self._stats[counter] += 1

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of the walk counters."""
        return self._stats.copy()


class SearchEngine:
    """
    Depth- and result-bounded concurrent subtree search.

    Hidden entries (names starting with ``.``) are never matched and never
    descended into. Unreadable subdirectories are skipped silently; only the
    root path is validated and can fail the call.
    """

    def __init__(self, enricher: Optional[MetadataEnricher] = None,
                 config: Optional[SearchConfig] = None):
        """
        Initialize the search engine.

        Args:
            enricher: Metadata enricher for accepted entries
            config: Batch sizes and item-count threshold
        """
        self.enricher = enricher or MetadataEnricher()
        self.config = config or SearchConfig()

    async def search(self, request: SearchRequest, sink: ResultSink) -> SearchState:
        """
        Validate the root and walk it, feeding matches into ``sink``.

        Raises:
            PathNotFound: If the root does not exist
            PathNotADirectory: If the root is not a directory
        """
        await validate_directory(request.path, "Search path", "Search path")
        return await self._run(request, sink)

    async def search_batch(self, request: SearchRequest) -> List[FileSystemEntry]:
        """
        Search and return all accepted entries, sorted once at the end.

        Returns:
            At most ``request.max_results`` entries, directories first, then
            case-insensitive name
        """
        sink = CollectingSink(request.max_results)
        await self.search(request, sink)
        return sink.results()

    async def search_streaming(self, request: SearchRequest, channel: NotificationChannel) -> None:
        """
        Search and emit each accepted entry as soon as it is accepted.

        Emits exactly one SearchEvent.STARTED before any result and exactly one
        SearchEvent.COMPLETED after the walk ends. Results arrive in discovery
        order, which varies between runs.
        """
        await validate_directory(request.path, "Search path", "Search path")

        sink = StreamingSink(request.max_results, channel)
        emit_safely(channel, SearchEvent.STARTED)
        try:
            await self._run(request, sink)
        finally:
            emit_safely(channel, SearchEvent.COMPLETED)

    async def _run(self, request: SearchRequest, sink: ResultSink) -> SearchState:
        state = SearchState(sink)
        logger.info(f"Searching {request.path} for '{request.query}' "
                    f"(max_depth={request.max_depth}, max_results={request.max_results})")

        await self._walk(request.path, request.query, 0, request.max_depth, state)

        stats = state.get_stats()
        logger.info(
            f"Search finished: {sink.count()} result(s), "
            f"{stats['directories_traversed']} directories traversed, "
            f"{stats['directories_skipped']} skipped"
        )
        return state

    async def _walk(self, directory: str, query: str, depth: int, max_depth: int,
                    state: SearchState) -> None:
        """Search one directory, then its subdirectories in bounded batches."""
        if state.stopped:
            return

        if depth >= max_depth:
            return

        if state.sink.is_full():
            state.stop()
            return

        try:
            children = await asyncio.to_thread(scan_children, directory)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {directory}: {e}")
            state.record('directories_skipped')
            return

        state.record('directories_traversed')

        pending = []
        subdirectories = []

        for child in children:
            if is_hidden(child.name):
                continue

            if matches(child.name, query):
                state.record('entries_matched')
                pending.append(self._accept(child, state))

            # The last permitted level still matches but is not descended
            if child.is_directory and depth < max_depth - 1:
                subdirectories.append(child.path)

            if len(pending) >= self.config.match_batch_size:
                await asyncio.gather(*pending)
                pending = []
                if state.stopped:
                    return

        if pending:
            await asyncio.gather(*pending)

        if state.stopped:
            return

        batch_size = self.config.subdirectory_batch_size
        for start in range(0, len(subdirectories), batch_size):
            batch = subdirectories[start:start + batch_size]
            await asyncio.gather(
                *(self._walk(subdirectory, query, depth + 1, max_depth, state) for subdirectory in batch)
            )
            if state.stopped:
                return

    async def _accept(self, child: DirectoryChild, state: SearchState) -> None:
        """Enrich one matching child and offer it to the sink."""
        if state.stopped:
            return

        # Child counts cost a directory scan each; skip them once results are plentiful
        include_item_count = state.sink.count() < self.config.item_count_threshold
        metadata = await self.enricher.resolve(child.path, child.is_directory,
                                               include_item_count=include_item_count)

        if state.stopped:
            return

        try:
            entry = FileSystemEntry.from_metadata(child.display_name, child.display_path,
                                                  child.is_directory, metadata)
        except ValidationError as e:
            logger.debug(f"Skipping {child.display_path}: {e}")
            state.record('entries_dropped')
            return

        if state.sink.try_accept(entry):
            state.record('entries_accepted')
        else:
            state.stop()
