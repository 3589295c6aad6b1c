"""Tests for prompt editing and history navigation."""

from __future__ import annotations

import pytest

from accord.frontends.tui.console import prompt
from accord.frontends.tui.console.state import SessionState


def typed(text: str) -> SessionState:
    state = SessionState()
    for ch in text:
        prompt.insert_char(state, ch)
    return state


class TestEditing:
    """Tests for character input and backspace."""

    def test_auto_prefix(self):
        state = typed("help")
        assert state.prompt_input == "/help"

    def test_no_double_prefix(self):
        state = typed("/help")
        assert state.prompt_input == "/help"

    def test_backspace(self):
        state = typed("/ab")
        prompt.backspace(state)
        assert state.prompt_input == "/a"

    def test_backspace_on_empty(self):
        state = SessionState()
        prompt.backspace(state)
        assert state.prompt_input == ""

    def test_paste_drops_line_breaks(self):
        state = SessionState()
        prompt.insert_text(state, "nick\r\nzed")
        assert state.prompt_input == "/nickzed"

    def test_editing_while_browsing_goes_live(self):
        state = SessionState(prompt_history=["/help"])
        prompt.history_up(state)
        prompt.insert_char(state, "x")
        assert state.prompt_input == "/helpx"
        assert state.prompt_history_index is None

    def test_backspace_while_browsing_goes_live(self):
        state = SessionState(prompt_history=["/help"])
        prompt.history_up(state)
        prompt.backspace(state)
        assert state.prompt_input == "/hel"
        assert state.prompt_history_index is None


class TestHistory:
    """Tests for history navigation."""

    def test_up_with_empty_history(self):
        state = typed("/x")
        prompt.history_up(state)
        assert state.prompt_input == "/x"
        assert state.prompt_history_index is None

    def test_up_saturates_at_oldest(self):
        state = SessionState(prompt_history=["/a", "/b"])
        for _ in range(5):
            prompt.history_up(state)
        assert state.prompt_history_index == 0
        assert state.prompt_input == "/a"

    def test_down_when_live_is_noop(self):
        state = typed("/x")
        prompt.history_down(state)
        assert state.prompt_input == "/x"

    def test_down_past_newest_goes_live(self):
        state = SessionState(prompt_history=["/a", "/b"])
        prompt.history_up(state)
        prompt.history_down(state)
        assert state.prompt_history_index is None
        assert state.prompt_input == ""

    @pytest.mark.parametrize("draft", ["", "/us"])
    @pytest.mark.parametrize("k", [1, 2, 3])
    def test_up_then_down_is_reversible(self, draft, k):
        """Up k times then Down k times returns to the original buffer."""
        state = typed(draft)
        state.prompt_history = ["/a", "/b", "/c"]

        for _ in range(k):
            prompt.history_up(state)
        assert state.prompt_input == state.prompt_history[3 - k]
        for _ in range(k):
            prompt.history_down(state)

        assert state.prompt_history_index is None
        assert state.prompt_input == draft


class TestSubmit:
    """Tests for submit."""

    def test_submit_trims_and_records(self):
        state = SessionState(prompt_input="  /help  ")
        assert prompt.submit(state) == "/help"
        assert state.prompt_input == ""
        assert state.prompt_history == ["/help"]

    def test_blank_submit(self):
        state = SessionState(prompt_input="   ")
        assert prompt.submit(state) is None
        assert state.prompt_history == []

    def test_no_consecutive_duplicates(self):
        state = SessionState()
        for line in ["/a", "/a", "/b", "/a", "/a", "/b", "/b"]:
            state.prompt_input = line
            prompt.submit(state)
        assert state.prompt_history == ["/a", "/b", "/a", "/b"]
        assert all(x != y for x, y in zip(state.prompt_history, state.prompt_history[1:]))

    def test_submit_from_history_returns_live(self):
        state = SessionState(prompt_history=["/a", "/b"])
        prompt.history_up(state)
        prompt.history_up(state)
        assert prompt.submit(state) == "/a"
        assert state.prompt_history == ["/a", "/b", "/a"]
        assert state.prompt_history_index is None
