"""Tests for column derivation, move planning and due date formatting."""

from datetime import UTC, datetime, timedelta

import pytest

from kanban_todo.domain.entities import KanbanColumn, Session, TaskStatus
from kanban_todo.domain.value_objects.kanban import (
    derive_column,
    format_due_date,
    parse_graph_datetime,
    plan_move,
)


class TestDeriveColumn:
    """Column placement from status + categories."""

    def test_completed_is_done_even_with_doing_category(self) -> None:
        assert derive_column("completed", ["Doing"]) is KanbanColumn.DONE

    @pytest.mark.parametrize("label", ["Doing", "doing", "DOING", "dOiNg"])
    def test_doing_category_any_case(self, label: str) -> None:
        assert derive_column("notStarted", ["Work", label]) is KanbanColumn.DOING

    def test_no_categories_is_not_started(self) -> None:
        assert derive_column("notStarted", None) is KanbanColumn.NOT_STARTED
        assert derive_column("notStarted", []) is KanbanColumn.NOT_STARTED

    def test_other_graph_status_counts_as_not_completed(self) -> None:
        assert derive_column("inProgress", ["Home"]) is KanbanColumn.NOT_STARTED

    def test_similar_label_is_not_doing(self) -> None:
        assert derive_column("notStarted", ["Doing later"]) is KanbanColumn.NOT_STARTED


class TestPlanMove:
    """Status + categories written on drag & drop."""

    def test_move_to_doing_appends_single_label(self) -> None:
        status, categories = plan_move(["Work", "doing", "Home"], "Doing")

        assert status is TaskStatus.NOT_STARTED
        assert categories == ["Work", "Home", "Doing"]

    def test_move_to_doing_twice_is_idempotent(self) -> None:
        _, first = plan_move(["Work"], "Doing")
        _, second = plan_move(first, "Doing")

        assert second == first == ["Work", "Doing"]

    def test_move_to_done_completes_and_strips_doing(self) -> None:
        status, categories = plan_move(["Doing", "Work"], "Done")

        assert status is TaskStatus.COMPLETED
        assert categories == ["Work"]

    def test_move_to_not_started(self) -> None:
        status, categories = plan_move(["DOING"], "Not Started")

        assert status is TaskStatus.NOT_STARTED
        assert categories == []

    def test_unknown_column_resets_and_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        status, categories = plan_move(["Doing", "Work"], "Backlog")

        assert status is TaskStatus.NOT_STARTED
        assert categories == ["Work"]
        assert "Unknown column name received: Backlog" in caplog.text

    def test_none_categories(self) -> None:
        assert plan_move(None, "Doing") == (TaskStatus.NOT_STARTED, ["Doing"])

    @pytest.mark.parametrize(
        ("categories", "column"),
        [
            (["Doing", "Home"], "Done"),
            (["Home"], "Doing"),
            (["doing", "Home", "Doing"], "Not Started"),
        ],
    )
    def test_moved_task_derives_to_target_column(
        self, categories: list[str], column: str
    ) -> None:
        status, new_categories = plan_move(categories, column)
        assert derive_column(status.value, new_categories).value == column


class TestDueDates:
    """Graph date-time parsing and the board's date format."""

    @pytest.mark.parametrize(
        "raw",
        [
            "2025-06-01T00:00:00.0000000",
            "2025-06-01T00:00:00Z",
            "2025-06-01T00:00:00+00:00",
            "2025-06-01T00:00:00.1234567Z",
        ],
    )
    def test_formats_graph_variants(self, raw: str) -> None:
        assert format_due_date(raw) == "Jun 1, 2025"

    def test_two_digit_day(self) -> None:
        assert format_due_date("2025-12-24T00:00:00Z") == "Dec 24, 2025"

    def test_unparseable_returned_unchanged(self) -> None:
        assert format_due_date("next tuesday") == "next tuesday"

    def test_parse_keeps_offset(self) -> None:
        parsed = parse_graph_datetime("2025-06-01T10:00:00Z")
        assert parsed == datetime(2025, 6, 1, 10, 0, tzinfo=UTC)

    def test_parse_invalid_returns_none(self) -> None:
        assert parse_graph_datetime("") is None


class TestSessionExpiry:
    """Expiry is strict: a token is still valid AT expires_at."""

    def _session(self, expires_at: datetime) -> Session:
        return Session(
            session_id="abc",
            access_token="a",
            refresh_token="r",
            expires_at=expires_at,
            created_at=expires_at - timedelta(hours=1),
        )

    def test_not_expired_at_boundary(self) -> None:
        at = datetime(2025, 6, 1, tzinfo=UTC)
        assert self._session(at).is_token_expired(at) is False

    def test_expired_after_boundary(self) -> None:
        at = datetime(2025, 6, 1, tzinfo=UTC)
        assert self._session(at).is_token_expired(at + timedelta(microseconds=1)) is True

    def test_stale_only_after_max_age(self) -> None:
        at = datetime(2025, 6, 1, tzinfo=UTC)
        session = self._session(at)
        max_age = timedelta(days=1)

        assert session.is_stale(at + max_age, max_age) is False
        assert session.is_stale(at + max_age + timedelta(seconds=1), max_age) is True


def test_column_from_title() -> None:
    assert KanbanColumn.from_title("Doing") is KanbanColumn.DOING
    assert KanbanColumn.from_title("doing") is None
