"""Tests for shellkeeper.console.execution (AsyncExecution, ExecutionTable)."""

from __future__ import annotations

import pytest

from shellkeeper.console.errors import ExecutionNotFound, NotFound
from shellkeeper.console.execution import (
    AsyncExecution,
    ExecutionStatus,
    ExecutionTable,
)


class TestAsyncExecution:
    def test_defaults(self) -> None:
        execution = AsyncExecution(command="ls")
        assert execution.status is ExecutionStatus.RUNNING
        assert execution.stdout == ""
        assert execution.stderr == ""
        assert execution.exit_code is None
        assert execution.error is None
        assert execution.ended_at is None
        assert not execution.is_terminal

    def test_unique_ids(self) -> None:
        assert AsyncExecution(command="a").id != AsyncExecution(command="a").id

    def test_status_values(self) -> None:
        assert {s.value for s in ExecutionStatus} == {"running", "completed", "failed"}


class TestExecutionTable:
    def test_start(self) -> None:
        table = ExecutionTable()
        execution = table.start("echo hi")
        assert execution.id in table
        assert len(table) == 1
        assert table.running_count() == 1

    def test_complete(self) -> None:
        table = ExecutionTable()
        execution = table.start("echo hi")
        assert table.complete(execution.id, 0, "hi", "")
        snap = table.get(execution.id)
        assert snap.status is ExecutionStatus.COMPLETED
        assert snap.exit_code == 0
        assert snap.stdout == "hi"
        assert snap.error is None
        assert snap.ended_at is not None
        assert table.running_count() == 0

    def test_fail(self) -> None:
        table = ExecutionTable()
        execution = table.start("nope")
        assert table.fail(execution.id, "spawn failed")
        snap = table.get(execution.id)
        assert snap.status is ExecutionStatus.FAILED
        assert snap.error == "spawn failed"
        assert snap.exit_code is None
        assert snap.ended_at is not None

    def test_append_output_while_running(self) -> None:
        table = ExecutionTable()
        execution = table.start("x")
        assert table.append_output(execution.id, "part")
        assert table.append_output(execution.id, "ial\n")
        assert table.append_output(execution.id, "warn", is_error=True)
        snap = table.get(execution.id)
        assert snap.status is ExecutionStatus.RUNNING
        assert snap.stdout == "partial\n"
        assert snap.stderr == "warn"

    def test_complete_replaces_accumulated_output(self) -> None:
        table = ExecutionTable()
        execution = table.start("x")
        table.append_output(execution.id, "a1\nb2\n")
        table.complete(execution.id, 0, "a1", "")
        assert table.get(execution.id).stdout == "a1"

    def test_fail_keeps_accumulated_output(self) -> None:
        table = ExecutionTable()
        execution = table.start("x")
        table.append_output(execution.id, "before the error")
        table.fail(execution.id, "read error")
        snap = table.get(execution.id)
        assert snap.stdout == "before the error"
        assert snap.error == "read error"

    def test_append_output_ignored_when_terminal(self) -> None:
        table = ExecutionTable()
        execution = table.start("x")
        table.complete(execution.id, 0, "done", "")
        assert not table.append_output(execution.id, "late")
        assert not table.append_output("missing", "late")
        assert table.get(execution.id).stdout == "done"

    def test_completed_is_final(self) -> None:
        table = ExecutionTable()
        execution = table.start("x")
        table.complete(execution.id, 0, "out", "")
        assert not table.fail(execution.id, "late error")
        assert not table.complete(execution.id, 9, "other", "other")
        snap = table.get(execution.id)
        assert snap.status is ExecutionStatus.COMPLETED
        assert snap.exit_code == 0
        assert snap.error is None
        assert snap.stdout == "out"

    def test_failed_is_final(self) -> None:
        table = ExecutionTable()
        execution = table.start("x")
        table.fail(execution.id, "boom")
        assert not table.complete(execution.id, 0, "", "")
        snap = table.get(execution.id)
        assert snap.status is ExecutionStatus.FAILED
        assert snap.exit_code is None
        assert snap.error == "boom"

    def test_transition_unknown_id(self) -> None:
        table = ExecutionTable()
        assert not table.complete("missing", 0, "", "")
        assert not table.fail("missing", "err")

    def test_get_unknown(self) -> None:
        table = ExecutionTable()
        with pytest.raises(ExecutionNotFound) as exc_info:
            table.get("missing", console="c1")
        assert isinstance(exc_info.value, NotFound)
        assert "missing" in str(exc_info.value)
        assert "c1" in str(exc_info.value)

    def test_get_returns_copy(self) -> None:
        table = ExecutionTable()
        execution = table.start("x")
        table.complete(execution.id, 0, "kept", "")
        snap = table.get(execution.id)
        snap.stdout = "mutated"
        snap.status = ExecutionStatus.FAILED
        fresh = table.get(execution.id)
        assert fresh.stdout == "kept"
        assert fresh.status is ExecutionStatus.COMPLETED

    def test_get_with_filter_not_persisted(self) -> None:
        table = ExecutionTable()
        execution = table.start("x")
        table.complete(execution.id, 0, "a1\nb2\na3", "a9")
        snap = table.get(execution.id, output_filter=r"a\d")
        assert snap.stdout == "a1\na3"
        assert snap.stderr == "a9"
        assert table.get(execution.id).stdout == "a1\nb2\na3"

    def test_filter_applies_to_stored_output(self) -> None:
        """Query-time filters run over whatever is stored, filtered or not."""
        table = ExecutionTable()
        execution = table.start("x")
        table.complete(execution.id, 0, "a1\na3", "")  # already filtered once
        assert table.get(execution.id, output_filter=r"\d").stdout == "1\n3"

    def test_running_count(self) -> None:
        table = ExecutionTable()
        a = table.start("a")
        table.start("b")
        c = table.start("c")
        table.complete(a.id, 0, "", "")
        table.fail(c.id, "x")
        assert table.running_count() == 1
