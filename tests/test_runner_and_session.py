"""
Tests for the subprocess runner and headless sessions, using real POSIX
commands instead of ripgrep.
"""

import asyncio
import dataclasses
import sys

import pytest
from conftest import FakeRunner, drain

from quick_file_search.config import SearchConfig
from quick_file_search.search.runner import SpawnError, SubprocessRunner
from quick_file_search.search.session import run_query, search_files

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX commands")


@posix_only
class TestSubprocessRunner:
    @pytest.mark.asyncio
    async def test_success_returns_stdout(self, tmp_path):
        outcome = await SubprocessRunner().run(["printf", "a.md\\n"], tmp_path)
        assert outcome.ok
        assert outcome.stdout == "a.md\n"
        assert outcome.message == ""

    @pytest.mark.asyncio
    async def test_runs_in_working_directory(self, tmp_path):
        (tmp_path / "here.md").write_text("x")
        outcome = await SubprocessRunner().run(["ls"], tmp_path)
        assert "here.md" in outcome.stdout

    @pytest.mark.asyncio
    async def test_exit_one_without_output_is_no_matches(self, tmp_path):
        outcome = await SubprocessRunner().run(["sh", "-c", "exit 1"], tmp_path)
        assert outcome.no_matches
        assert not outcome.killed

    @pytest.mark.asyncio
    async def test_failure_message_from_stderr(self, tmp_path):
        outcome = await SubprocessRunner().run(["sh", "-c", "echo 'rg: bad regex' >&2; exit 2"], tmp_path)
        assert not outcome.ok and not outcome.no_matches
        assert outcome.message == "rg: bad regex"

    @pytest.mark.asyncio
    async def test_failure_without_stderr_names_command(self, tmp_path):
        outcome = await SubprocessRunner().run(["sh", "-c", "exit 3"], tmp_path)
        assert outcome.message == "Command failed: sh -c exit 3"

    @pytest.mark.asyncio
    async def test_arguments_are_not_interpreted_by_a_shell(self, tmp_path):
        outcome = await SubprocessRunner().run(["echo", "$(id)", ";", "*"], tmp_path)
        assert outcome.stdout == "$(id) ; *\n"

    @pytest.mark.asyncio
    async def test_missing_executable_raises_spawn_error(self, tmp_path):
        with pytest.raises(SpawnError, match="Failed to start"):
            await SubprocessRunner().run([str(tmp_path / "no-such-rg"), "--files"], tmp_path)

    @pytest.mark.asyncio
    async def test_cancel_kills_and_reaps_process(self, tmp_path, monkeypatch):
        started = []
        create = asyncio.create_subprocess_exec

        async def recording_create(*args, **kwargs):
            process = await create(*args, **kwargs)
            started.append(process)
            return process

        monkeypatch.setattr(asyncio, "create_subprocess_exec", recording_create)
        task = asyncio.create_task(SubprocessRunner().run(["sleep", "30"], tmp_path))
        await asyncio.sleep(0.2)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(task, 5)

        (process,) = started
        assert process.returncode is not None
        assert process.returncode < 0


class TestSession:
    @pytest.mark.asyncio
    async def test_run_query_waits_for_generation(self, config):
        runner = FakeRunner()
        query = asyncio.create_task(run_query("alpha", config, runner=runner))
        await drain()
        assert not query.done()

        runner.content_process("alpha").finish(0, "a.md\0alpha here\n")
        runner.filename_process("alpha").finish(2, message="rg: broken")
        items = await asyncio.wait_for(query, 1)

        assert [item.label for item in items] == ["a.md", "rg: broken"]

    @pytest.mark.asyncio
    async def test_empty_query_returns_immediately(self, config):
        runner = FakeRunner()
        assert await run_query("  ", config, runner=runner) == ()
        assert runner.processes == []

    @pytest.mark.asyncio
    async def test_no_roots_returns_immediately(self):
        runner = FakeRunner()
        config = SearchConfig(roots=[], debounce_interval=0, selection_settle_delay=0)

        assert await asyncio.wait_for(run_query("alpha", config, runner=runner), 1) == ()
        assert runner.processes == []

    @pytest.mark.asyncio
    async def test_search_files_drops_status_messages(self, config):
        runner = FakeRunner()
        query = asyncio.create_task(search_files("alpha", config, runner=runner))
        await drain()
        runner.content_process("alpha").finish(2, message="rg: broken")
        runner.filename_process("alpha").finish(0, "alpha.md\n")

        matches = await asyncio.wait_for(query, 1)
        assert [match.label for match in matches] == ["alpha.md"]

    @posix_only
    @pytest.mark.asyncio
    async def test_shell_syntax_in_query_is_searched_literally(self, config, tmp_path):
        marker = tmp_path / "marker"
        config = dataclasses.replace(config, rg_path="true")

        items = await asyncio.wait_for(run_query(f"x';touch${{IFS}}{marker};'", config), 5)

        assert items == ()
        assert not marker.exists()
