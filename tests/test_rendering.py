# =============================================================================
# Rendering Tests
# =============================================================================
# Truncation, single-line composition and fitting message lists into a
# limited number of lines.
# =============================================================================

from datetime import timedelta

import pytest

from mailbox_tui.core import MailboxPath, State
from mailbox_tui.rendering import (
    MessageFormatter,
    TimestampFormat,
    TruncatedLine,
    scroll_window,
    truncate_string,
)
from mailbox_tui.rendering.formatter import pluralize, summarize_mailboxes

STAMP = "2024-05-01 12:00:00 UTC"


class TestTruncate:
    def test_short_text_is_unchanged(self):
        assert truncate_string("hello", 5) == "hello"

    def test_long_text_gets_ellipsis(self):
        assert truncate_string("Hello, world!", 6) == "Hello…"

    def test_wide_characters_count_double(self):
        # Each of these characters is two cells wide
        assert truncate_string("日本語テキスト", 7) == "日本語…"

    def test_zero_columns(self):
        assert truncate_string("hello", 0) == ""

    def test_truncated_line(self):
        line = TruncatedLine(9)
        line.append("hello ")
        line.append("world", "red")
        assert str(line) == "hello wo…"
        assert line.remaining_columns == 0


class TestHelpers:
    def test_pluralize(self):
        assert pluralize("message", 1) == "message"
        assert pluralize("message", 0) == "messages"
        assert pluralize("mailbox", 2) == "mailboxes"

    @pytest.mark.parametrize("names, expected", [
        (["a"], "a"),
        (["a", "b"], "a and b"),
        (["a", "b", "c"], "a, b, and c"),
        (["a", "b", "c", "d"], "a, b, and 2 other mailboxes"),
    ])
    def test_summarize_mailboxes(self, names, expected):
        assert summarize_mailboxes([MailboxPath(n) for n in names]) == expected

    @pytest.mark.parametrize("cursor, count, height, expected", [
        (None, 10, 3, (0, 3)),
        (2, 10, 3, (0, 3)),
        (5, 10, 3, (3, 6)),
        (9, 10, 3, (7, 10)),
        (0, 2, 5, (0, 2)),
        (0, 0, 5, (0, 0)),
    ])
    def test_scroll_window(self, cursor, count, height, expected):
        assert scroll_window(cursor, count, height) == expected


class TestMessageFormatter:
    def test_format_message(self, plain_formatter, make_message):
        message = make_message(1, "backups/nas", "done")
        assert plain_formatter.format_message(message) == f"* done [backups/nas] @ {STAMP}"

    @pytest.mark.parametrize("state, marker", [
        (State.UNREAD, "*"),
        (State.READ, " "),
        (State.ARCHIVED, "-"),
    ])
    def test_state_markers(self, plain_formatter, make_message, state, marker):
        line = plain_formatter.format_message(make_message(1, "a", "x", state=state))
        assert line.startswith(f"{marker} x")

    def test_only_content_is_truncated(self, plain_formatter, make_message):
        message = make_message(1, "a", "hello world")
        suffix = f" [a] @ {STAMP}"
        formatter = plain_formatter.with_max_columns(2 + 5 + len(suffix))
        assert formatter.format_message(message) == f"* hell…{suffix}"

    def test_truncation_keeps_an_ellipsis_when_narrow(self, plain_formatter, make_message):
        formatter = plain_formatter.with_max_columns(10)
        assert formatter.format_message(make_message(1, "a", "hello")).startswith("* … [a]")

    def test_relative_timestamps(self, plain_formatter, make_message, now):
        formatter = (
            plain_formatter
            .with_timestamp_format(TimestampFormat.RELATIVE)
            .with_now(now + timedelta(minutes=5))
        )
        assert formatter.format_message(make_message(1, "a", "x")).endswith("5 minutes ago")

    def test_color_styles_marker_mailbox_and_timestamp(self, make_message):
        formatter = MessageFormatter().with_timestamp_format(TimestampFormat.UTC)
        line = formatter.compose_line(make_message(1, "a", "x"))
        styles = {str(span.style) for span in line.spans}
        assert {"bold red", "bold green", "yellow"} <= styles

    def test_no_color_has_no_styles(self, plain_formatter, make_message):
        line = plain_formatter.compose_line(make_message(1, "a", "x"))
        assert all(not span.style for span in line.spans)

    def test_unlimited_output_shows_everything(self, plain_formatter, make_message):
        messages = [make_message(i, "a", f"m{i}", minutes_ago=i) for i in range(5)]
        assert len(plain_formatter.format_messages(messages).splitlines()) == 5

    def test_round_robin_with_hint(self, plain_formatter, make_message):
        messages = [
            make_message(1, "a", "a1"),
            make_message(2, "a", "a2", minutes_ago=1),
            make_message(3, "a", "a3", minutes_ago=2),
            make_message(4, "b", "b1", minutes_ago=3),
        ]
        lines = plain_formatter.with_max_lines(3).format_messages(messages).splitlines()
        assert [line.split(" [")[0] for line in lines] == ["* a1", "* a2", "* b1"]
        assert lines[1].endswith(" (+1 older message)")
        assert not lines[2].endswith(")")

    def test_groups_are_ordered_by_newest_message(self, plain_formatter, make_message):
        messages = [
            make_message(1, "old", "o1", minutes_ago=10),
            make_message(2, "new", "n1", minutes_ago=1),
        ]
        lines = plain_formatter.format_messages(messages).splitlines()
        assert [line.split(" ")[1] for line in lines] == ["n1", "o1"]

    def test_summary_line_for_hidden_mailboxes(self, plain_formatter, make_message):
        messages = [
            make_message(1, "a", "a1"),
            make_message(2, "a", "a2", minutes_ago=1),
            make_message(3, "b", "b1", minutes_ago=2),
            make_message(4, "c", "c1", minutes_ago=3),
            make_message(5, "c", "c2", minutes_ago=4),
        ]
        lines = plain_formatter.with_max_lines(2).format_messages(messages).splitlines()
        assert lines[0].startswith("* a1 [a]")
        assert lines[0].endswith("(+1 older message)")
        assert lines[1] == "(+3 older messages in b and c)"

    def test_summary_line_fits_the_width(self, plain_formatter, make_message):
        messages = [
            make_message(i, f"a-rather-long-mailbox-name-{i}", minutes_ago=i) for i in range(4)
        ]
        formatter = plain_formatter.with_max_lines(2).with_max_columns(30)
        summary = formatter.format_messages(messages).splitlines()[-1]
        assert summary.startswith("(+3 older messages in a-rathe")
        assert summary.endswith("…")
        assert len(summary) == 30

    def test_render_lines_never_exceeds_max_lines(self, plain_formatter, make_message):
        messages = [
            make_message(i, f"box{i % 7}", minutes_ago=i) for i in range(30)
        ]
        for max_lines in range(1, 12):
            lines = plain_formatter.with_max_lines(max_lines).render_lines(messages)
            assert len(lines) == max_lines

    def test_full_output_removes_limits(self, plain_formatter):
        formatter = plain_formatter.with_max_lines(3).with_max_columns(20).full_output()
        assert formatter.max_lines is None
        assert formatter.max_columns is None

    def test_empty_input(self, plain_formatter):
        assert plain_formatter.format_messages([]) == ""
