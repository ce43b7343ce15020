"""
Unit tests for the recursive search engine.

Tests matching, hidden-entry exclusion, depth and result bounds,
cooperative stopping, error absorption and both result modes.
"""

import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from fsbrowse.errors import PathNotADirectory, PathNotFound
from fsbrowse.models.config import SearchConfig
from fsbrowse.models.entries import EntryMetadata
from fsbrowse.models.search_request import SearchRequest
from fsbrowse.tools import lister as lister_module
from fsbrowse.tools.metadata import MetadataEnricher
from fsbrowse.tools.search import SearchEngine
from fsbrowse.tools.sinks import CollectingSink, QueueChannel, SearchEvent


def make_undecodable_file(directory):
    """Create an empty file whose name is not valid UTF-8, or skip where the OS refuses."""
    raw = os.path.join(os.fsencode(directory), b"bad\xff.txt")
    try:
        with open(raw, "wb"):
            pass
    except OSError:
        pytest.skip("filesystem rejects names that are not valid UTF-8")


class SearchTestBase:
    """Creates a fresh temporary tree per test."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir)
        self.engine = SearchEngine()

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def make_files(self, *relative_paths):
        for relative in relative_paths:
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"Content of {relative}")

    def request(self, query, **kwargs):
        return SearchRequest.build(self.temp_dir, query, **kwargs)


class TestBatchSearch(SearchTestBase):
    """Test cases for collect-and-return searches."""

    @pytest.mark.asyncio
    async def test_finds_matches_in_subdirectories(self):
        self.make_files("a.txt", "b.log", "sub/c.txt")

        results = await self.engine.search_batch(self.request("*.txt"))

        assert [r.name for r in results] == ["a.txt", "c.txt"]
        assert [r.path for r in results] == [
            os.path.join(self.temp_dir, "a.txt"),
            os.path.join(self.temp_dir, "sub", "c.txt"),
        ]
        assert all(r.is_directory is False for r in results)
        assert all(r.size is not None for r in results)

    @pytest.mark.asyncio
    async def test_results_sorted_directories_first(self):
        self.make_files("zeta_report.txt", "Alpha_report.txt", "report_dir/x.bin")

        results = await self.engine.search_batch(self.request("report"))

        assert [r.name for r in results] == ["report_dir", "Alpha_report.txt", "zeta_report.txt"]
        assert results[0].is_directory is True
        assert results[0].item_count == 1
        assert results[0].size is None

    @pytest.mark.asyncio
    async def test_hidden_entries_are_skipped(self):
        self.make_files(".hidden", ".config/notes.txt", "visible/notes.txt")

        hidden = await self.engine.search_batch(self.request(".hidden"))
        notes = await self.engine.search_batch(self.request("notes"))

        assert hidden == []
        assert [r.path for r in notes] == [os.path.join(self.temp_dir, "visible", "notes.txt")]

    @pytest.mark.asyncio
    async def test_result_count_bound(self):
        self.make_files(*[f"file_{i:03d}.txt" for i in range(120)])
        self.make_files(*[f"nested/more_{i:03d}.txt" for i in range(30)])

        results = await self.engine.search_batch(self.request("*.txt", max_results=10))

        assert len(results) == 10
        assert len({r.path for r in results}) == 10

    @pytest.mark.asyncio
    async def test_result_count_bound_exact_fit(self):
        self.make_files(*[f"f{i}.txt" for i in range(5)])

        results = await self.engine.search_batch(self.request("*.txt", max_results=5))

        assert len(results) == 5

    @pytest.mark.asyncio
    async def test_depth_bound(self):
        self.make_files("d0.txt", "l1/d1.txt", "l1/l2/d2.txt", "l1/l2/l3/d3.txt")

        results = await self.engine.search_batch(self.request("*.txt", max_depth=2))

        assert sorted(r.name for r in results) == ["d0.txt", "d1.txt"]

    @pytest.mark.asyncio
    async def test_last_level_directory_matches_but_is_not_descended(self):
        self.make_files("match_dir/match_file")

        results = await self.engine.search_batch(self.request("match", max_depth=1))

        assert [r.name for r in results] == ["match_dir"]

    @pytest.mark.asyncio
    async def test_zero_depth_returns_nothing(self):
        self.make_files("a.txt")

        assert await self.engine.search_batch(self.request("a", max_depth=0)) == []

    @pytest.mark.asyncio
    async def test_zero_results_returns_nothing(self):
        self.make_files("a.txt")

        assert await self.engine.search_batch(self.request("a", max_results=0)) == []

    @pytest.mark.asyncio
    async def test_idempotent(self):
        self.make_files(*[f"dir_{d}/file_{i}.txt" for d in range(5) for i in range(8)])

        first = await self.engine.search_batch(self.request("file"))
        second = await self.engine.search_batch(self.request("file"))

        assert [r.path for r in first] == [r.path for r in second]
        assert len(first) == 40

    @pytest.mark.asyncio
    async def test_small_batches_give_same_results(self):
        self.make_files(*[f"dir_{d}/sub/file_{i}.txt" for d in range(4) for i in range(6)])
        tiny = SearchEngine(config=SearchConfig(match_batch_size=2, subdirectory_batch_size=1))

        default_results = await self.engine.search_batch(self.request("*.txt"))
        tiny_results = await tiny.search_batch(self.request("*.txt"))

        assert [r.path for r in tiny_results] == [r.path for r in default_results]
        assert len(tiny_results) == 24

    @pytest.mark.asyncio
    async def test_item_count_threshold(self):
        self.make_files("match_a/x", "match_b/y")
        engine = SearchEngine(config=SearchConfig(item_count_threshold=0))

        results = await engine.search_batch(self.request("match"))

        directories = [r for r in results if r.is_directory]
        assert len(directories) == 2
        assert all(r.item_count is None for r in directories)

    @pytest.mark.asyncio
    async def test_unreadable_subdirectory_is_skipped(self):
        self.make_files("ok/found.txt", "locked/hidden_from_us.txt", "top.txt")
        locked = os.path.join(self.temp_dir, "locked")
        real_scan = lister_module.scan_children

        def scan(directory):
            if str(directory) == locked:
                raise PermissionError("denied")
            return real_scan(directory)

        with patch('fsbrowse.tools.search.scan_children', side_effect=scan):
            sink = CollectingSink(100)
            state = await self.engine.search(self.request("*.txt"), sink)

        assert sorted(r.name for r in sink.results()) == ["found.txt", "top.txt"]
        assert state.get_stats()['directories_skipped'] == 1

    @pytest.mark.asyncio
    async def test_undecodable_name_does_not_abort_search(self):
        self.make_files("good.txt", "nested/deep.txt")
        make_undecodable_file(self.temp_dir)

        results = await self.engine.search_batch(self.request("*.txt"))

        assert sorted(r.name for r in results) == ["bad\ufffd.txt", "deep.txt", "good.txt"]

    @pytest.mark.asyncio
    async def test_entry_that_fails_validation_is_dropped(self):
        self.make_files("a.txt", "b.txt")

        class BadTimestampEnricher(MetadataEnricher):
            async def resolve(self, path, is_directory, include_item_count=True):
                if os.path.basename(path) == "a.txt":
                    return EntryMetadata(modified="not-a-number")
                return EntryMetadata()

        engine = SearchEngine(BadTimestampEnricher())
        sink = CollectingSink(10)
        state = await engine.search(self.request("*.txt"), sink)

        assert [r.name for r in sink.results()] == ["b.txt"]
        assert state.get_stats()['entries_dropped'] == 1

    @pytest.mark.asyncio
    async def test_missing_root(self):
        with pytest.raises(PathNotFound, match="Search path does not exist"):
            await self.engine.search_batch(SearchRequest(path=str(self.root / "nope"), query="a"))

    @pytest.mark.asyncio
    async def test_root_is_a_file(self):
        self.make_files("a.txt")

        with pytest.raises(PathNotADirectory, match="Search path is not a directory"):
            await self.engine.search_batch(SearchRequest(path=str(self.root / "a.txt"), query="a"))


class TestStopFlag(SearchTestBase):
    """Test cases for cooperative early termination."""

    @pytest.mark.asyncio
    async def test_stop_flag_set_when_limit_reached(self):
        self.make_files(*[f"f{i}.txt" for i in range(20)])
        engine = SearchEngine(config=SearchConfig(match_batch_size=5))
        sink = CollectingSink(3)

        state = await engine.search(self.request("*.txt", max_results=3), sink)

        assert state.stopped is True
        assert sink.count() == 3
        # The walk gave up after the first batch that overflowed
        assert state.get_stats()['entries_matched'] <= 5

    @pytest.mark.asyncio
    async def test_stopped_walk_skips_remaining_subdirectories(self):
        self.make_files(*[f"dir_{d:02d}/f.txt" for d in range(30)])
        engine = SearchEngine(config=SearchConfig(subdirectory_batch_size=2))
        sink = CollectingSink(1)

        state = await engine.search(self.request("*.txt", max_results=1), sink)

        assert sink.count() == 1
        assert state.stopped is True
        assert state.get_stats()['directories_traversed'] < 31

    @pytest.mark.asyncio
    async def test_full_sink_on_entry_stops_without_reading(self):
        self.make_files("a.txt")
        sink = CollectingSink(0)

        state = await self.engine.search(self.request("*.txt", max_results=0), sink)

        assert state.stopped is True
        assert state.get_stats()['directories_traversed'] == 0


class TestStreamingSearch(SearchTestBase):
    """Test cases for incremental-emit searches."""

    @pytest.mark.asyncio
    async def test_event_order(self):
        self.make_files("a.txt", "b.log", "sub/c.txt")
        channel = QueueChannel()

        await self.engine.search_streaming(self.request("*.txt"), channel)

        messages = channel.drain()
        events = [event for event, _ in messages]
        assert events[0] == SearchEvent.STARTED
        assert events[-1] == SearchEvent.COMPLETED
        assert events.count(SearchEvent.STARTED) == 1
        assert events.count(SearchEvent.COMPLETED) == 1
        assert {payload.name for event, payload in messages if event == SearchEvent.RESULT} == {"a.txt", "c.txt"}

    @pytest.mark.asyncio
    async def test_streaming_respects_result_bound(self):
        self.make_files(*[f"f{i:03d}.txt" for i in range(80)])
        channel = QueueChannel()

        await self.engine.search_streaming(self.request("*.txt", max_results=7), channel)

        results = [p for e, p in channel.drain() if e == SearchEvent.RESULT]
        assert len(results) == 7

    @pytest.mark.asyncio
    async def test_streaming_matches_batch_set(self):
        self.make_files(*[f"d{d}/x{i}.txt" for d in range(3) for i in range(4)], "top.txt")
        channel = QueueChannel()

        batch = await self.engine.search_batch(self.request("*.txt"))
        await self.engine.search_streaming(self.request("*.txt"), channel)

        streamed = {p.path for e, p in channel.drain() if e == SearchEvent.RESULT}
        assert streamed == {r.path for r in batch}

    @pytest.mark.asyncio
    async def test_invalid_root_emits_nothing(self):
        channel = QueueChannel()

        with pytest.raises(PathNotFound):
            await self.engine.search_streaming(
                SearchRequest(path=str(self.root / "nope"), query="a"), channel
            )

        assert channel.drain() == []

    @pytest.mark.asyncio
    async def test_failing_consumer_does_not_abort_walk(self):
        self.make_files("a.txt", "b.txt")
        received = []

        class FlakyChannel:
            def emit(self, event, payload=None):
                received.append(event)
                if event == SearchEvent.RESULT:
                    raise RuntimeError("consumer gone")

        await self.engine.search_streaming(self.request("*.txt"), FlakyChannel())

        assert received[0] == SearchEvent.STARTED
        assert received[-1] == SearchEvent.COMPLETED
        assert received.count(SearchEvent.RESULT) == 2

    @pytest.mark.asyncio
    async def test_undecodable_name_streams_to_completion(self):
        self.make_files("good.txt")
        make_undecodable_file(self.temp_dir)
        channel = QueueChannel()

        await self.engine.search_streaming(self.request("*.txt"), channel)

        messages = channel.drain()
        assert [e for e, _ in messages][-1] == SearchEvent.COMPLETED
        assert {p.name for e, p in messages if e == SearchEvent.RESULT} == {"bad\ufffd.txt", "good.txt"}

    @pytest.mark.asyncio
    async def test_completed_emitted_when_walk_fails(self):
        self.make_files("a.txt")
        channel = QueueChannel()

        with patch.object(SearchEngine, '_walk', side_effect=RuntimeError("walk broke")):
            with pytest.raises(RuntimeError):
                await self.engine.search_streaming(self.request("*.txt"), channel)

        assert [e for e, _ in channel.drain()] == [SearchEvent.STARTED, SearchEvent.COMPLETED]
