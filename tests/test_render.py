"""
Tests for refwatch/render.py rendering functions.

These tests verify that render functions:
1. Handle empty data gracefully
2. Show every repository and its outcome
3. Mark watched and target references in remote listings
"""
from refwatch import render
from refwatch.domain import (
    HEAD,
    CycleResult,
    CycleStatus,
    PollSummary,
    RemoteReference,
    RemoteReferenceSnapshot,
)


class TestRenderTable:
    """Tests for render_table function."""

    def test_empty_rows_shows_message(self, capsys):
        """Empty rows should show 'No data' message."""
        render.render_table(["Col1", "Col2"], [])
        captured = capsys.readouterr()
        assert "No data to display" in captured.out

    def test_single_row(self, capsys):
        render.render_table(["Name", "Value"], [["test", "123"]])
        captured = capsys.readouterr()
        assert "test" in captured.out
        assert "123" in captured.out


class TestRenderCycleTable:
    """Tests for render_cycle_table function."""

    def test_empty_results(self, capsys):
        render.render_cycle_table([])
        assert "No repositories resolved" in capsys.readouterr().out

    def test_results_and_errors(self, capsys):
        results = [
            CycleResult("hello", CycleStatus.OK, watched=("refs/heads/master",),
                        target="refs/heads/master", reference_count=3),
            CycleResult("other", CycleStatus.FAILED, error="connection refused"),
        ]
        render.render_cycle_table(results)
        out = capsys.readouterr().out
        assert "hello" in out
        assert "other" in out
        # Error lines are printed below the table
        assert "connection refused" in out


class TestPollSummary:
    """Tests for print_poll_summary function."""

    def test_empty_summary_prints_nothing(self, capsys):
        render.print_poll_summary(PollSummary())
        assert capsys.readouterr().out == ""

    def test_counts(self, capsys):
        summary = PollSummary()
        summary.add_result(CycleResult("a", CycleStatus.OK))
        summary.add_result(CycleResult("b", CycleStatus.SKIPPED, error="no head"))
        render.print_poll_summary(summary)
        out = capsys.readouterr().out
        assert "Resolved: 1" in out
        assert "Skipped: 1" in out
        assert "Failed" not in out


class TestRenderSnapshotTable:
    """Tests for render_snapshot_table function."""

    def test_marks_roles(self, capsys):
        snapshot = RemoteReferenceSnapshot.of(
            RemoteReference(HEAD, symbolic_target="refs/heads/master"),
            RemoteReference("refs/heads/master", object_id="0123456789abcdef"),
        )
        render.render_snapshot_table(snapshot, frozenset({"refs/heads/master"}), "refs/heads/master")
        out = capsys.readouterr().out
        assert "watched, target" in out
        assert "0123456789ab" in out
        assert "0123456789abcdef" not in out
