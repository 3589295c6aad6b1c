"""Tests for console rendering."""

from __future__ import annotations

import io

from rich.console import Console

from accord.__version__ import __version__
from accord.frontends.tui.console.rendering import (
    build_layout,
    content_height,
    content_title,
    header_text,
    visible_window,
)
from accord.frontends.tui.console.state import SessionState
from accord.frontends.tui.console.themes import THEMES, get_theme
from accord.node.handle import NodeHandle


def render_text(state: SessionState, width: int = 100, height: int = 24) -> str:
    console = Console(
        file=io.StringIO(),
        width=width,
        height=height,
        theme=get_theme("default"),
        record=True,
        color_system=None,
    )
    console.print(build_layout(state, height))
    return console.export_text()


class TestVisibleWindow:
    """Tests for scroll clamping."""

    def test_fits(self):
        assert visible_window(["a", "b"], 5, 10) == (0, ["a", "b"])

    def test_clamped_to_last_page(self):
        lines = [str(i) for i in range(30)]
        start, window = visible_window(lines, 100, 10)
        assert start == 20
        assert window == lines[20:]

    def test_negative_scroll(self):
        lines = [str(i) for i in range(30)]
        assert visible_window(lines, -3, 10)[0] == 0

    def test_content_height_never_zero(self):
        assert content_height(3) == 1


class TestTitles:
    """Tests for header and title text."""

    def test_title_without_overflow(self):
        assert content_title("Peers", 5, 0, 10) == " Peers "

    def test_title_with_scroll_percentage(self):
        assert content_title("Events", 30, 0, 10) == " Events  (0%  PgUp/PgDn) "
        assert content_title("Events", 30, 10, 10) == " Events  (50%  PgUp/PgDn) "
        assert content_title("Events", 30, 20, 10) == " Events  (100%  PgUp/PgDn) "

    def test_header_stopped(self):
        text = header_text(SessionState()).plain
        assert f"Accord  v{__version__}" in text
        assert text.endswith("●  Stopped")

    def test_header_running(self):
        """The header shows the address the node is running on."""
        state = SessionState(listen_port=51031)
        state.set_running(NodeHandle(address="/ip4/0.0.0.0/tcp/51031"))
        text = header_text(state).plain
        assert "●  Running  (port 51031)" in text
        assert text.endswith("/ip4/0.0.0.0/tcp/51031")

    def test_header_follows_node_status(self):
        state = SessionState(listen_port=51031)
        state.set_running(NodeHandle(address="/ip4/0.0.0.0/tcp/51031"))
        state.clear_node()
        text = header_text(state).plain
        assert text.endswith("●  Stopped")
        assert "/ip4" not in text


class TestBuildLayout:
    """Tests for the full-screen layout."""

    def test_renders_welcome_and_prompt(self):
        state = SessionState(prompt_input="/hel")
        text = render_text(state)
        assert "Welcome to Accord!" in text
        assert "> /hel" in text
        assert "Stopped" in text

    def test_user_text_is_not_markup(self):
        """Brackets in content are shown verbatim."""
        state = SessionState()
        state.set_content("Messages", ["[a1a1a1a1…→b2b2b2b2…]  [note]  [bold]x[/bold]"])
        text = render_text(state)
        assert "[note]  [bold]x[/bold]" in text

    def test_all_themes_render(self):
        state = SessionState()
        for name in THEMES:
            console = Console(file=io.StringIO(), width=80, height=20, theme=get_theme(name))
            console.print(build_layout(state, 20))

    def test_unknown_theme_falls_back(self):
        assert get_theme("nope") is THEMES["default"]
