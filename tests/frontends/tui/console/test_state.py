"""Tests for console session state."""

from __future__ import annotations

from accord.core.types import STOPPED
from accord.frontends.tui.console.state import WELCOME_LINES, WELCOME_TITLE, SessionState
from accord.node.handle import NodeHandle


class TestSessionState:
    """Tests for SessionState."""

    def test_starts_with_welcome_view(self):
        state = SessionState()
        assert state.content_title == WELCOME_TITLE
        assert state.content_lines == WELCOME_LINES
        assert state.events == WELCOME_LINES
        assert state.output == []
        assert state.prompt_history_index is None
        assert state.node_status == STOPPED
        assert not state.should_quit

    def test_welcome_lists_are_independent(self):
        """Mutating one log does not leak into the other or the constant."""
        state = SessionState()
        state.push_event("[NODE] x")
        assert state.content_lines == WELCOME_LINES
        assert len(WELCOME_LINES) == 3

    def test_set_content_resets_scroll(self):
        state = SessionState()
        state.content_scroll = 40
        lines = ["a", "b"]
        state.set_content("Peers", lines)
        lines.append("c")
        assert state.content_title == "Peers"
        assert state.content_lines == ["a", "b"]
        assert state.content_scroll == 0

    def test_running_and_cleared_together(self):
        state = SessionState()
        handle = NodeHandle(address="/ip4/0.0.0.0/tcp/51030")

        state.set_running(handle)
        assert state.node_running
        assert state.node_status.address == handle.address

        assert state.clear_node() is handle
        assert not state.node_running
        assert state.node_status == STOPPED
        assert state.clear_node() is None

    def test_local_user(self, alice, bob):
        state = SessionState()
        assert state.local_user() is None
        state.users = [bob, alice]
        assert state.local_user() is alice
