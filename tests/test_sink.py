"""
Tests for the debounced sink.
"""

import asyncio

import pytest

from quick_file_search.search.sink import DebouncedSink


class TestDebouncedSink:
    @pytest.mark.asyncio
    async def test_burst_is_committed_once(self):
        commits = []
        sink = DebouncedSink(commits.append, (), interval=0.01)

        sink.push((1,))
        sink.push((1, 2))
        sink.push((1, 2, 3))
        assert commits == []
        assert sink.pending

        await asyncio.sleep(0.05)
        assert commits == [(1, 2, 3)]
        assert not sink.pending

    @pytest.mark.asyncio
    async def test_current_returns_uncommitted_value(self):
        commits = []
        sink = DebouncedSink(commits.append, (), interval=10)

        sink.push(("a",))
        assert sink.current == ("a",)
        assert commits == []
        sink.close()

    @pytest.mark.asyncio
    async def test_flush_commits_immediately(self):
        commits = []
        sink = DebouncedSink(commits.append, (), interval=10)

        sink.push(("a",))
        sink.flush()
        assert commits == [("a",)]
        assert not sink.pending

    @pytest.mark.asyncio
    async def test_unchanged_value_is_not_recommitted(self):
        commits = []
        sink = DebouncedSink(commits.append, (), interval=0)

        sink.push(("a",))
        sink.push(("a",))
        sink.push(())
        assert commits == [("a",), ()]

    @pytest.mark.asyncio
    async def test_close_drops_pending_commit(self):
        commits = []
        sink = DebouncedSink(commits.append, (), interval=0.01)

        sink.push(("a",))
        sink.close()
        await asyncio.sleep(0.03)
        assert commits == []
