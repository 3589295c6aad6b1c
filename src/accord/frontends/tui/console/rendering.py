"""Full-screen rendering for the Accord console.

Builds a three-panel rich Layout (header, content, prompt) from the session
state and shows it through a rich Live display on the alternate screen.
Rendering only reads the session; scroll clamping happens here.
"""

from __future__ import annotations

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from accord.__version__ import __version__
from accord.frontends.tui.console.state import SessionState

HEADER_SIZE = 3
PROMPT_SIZE = 3
PROMPT_HINT = "Enter: run  ↑↓: history  PgUp/PgDn: scroll  Esc: quit"


def content_height(screen_height: int) -> int:
    """Lines available inside the content panel's borders."""
    return max(screen_height - HEADER_SIZE - PROMPT_SIZE - 2, 1)


def max_scroll(total: int, height: int) -> int:
    """Scroll offset that shows the last page."""
    return max(total - height, 0)


def visible_window(lines: list[str], scroll: int, height: int) -> tuple[int, list[str]]:
    """Clamp scroll into [0, len(lines) - height] and slice the visible lines.

    Returns:
        (clamped scroll, visible lines)
    """
    start = min(max(scroll, 0), max_scroll(len(lines), height))
    return start, lines[start : start + height]


def content_title(title: str, total: int, start: int, height: int) -> str:
    """Panel title, with a scroll position hint when the view overflows."""
    if total <= height:
        return f" {title} "
    pct = round(start * 100 / (total - height))
    return f" {title}  ({pct}%  PgUp/PgDn) "


def header_text(state: SessionState) -> Text:
    text = Text()
    text.append(f" Accord  v{__version__}", style="header.title")
    text.append("   │   ")
    status = state.node_status
    if status.running:
        text.append(f"●  Running  (port {state.listen_port})", style="status.running")
        text.append(f"   {status.address}", style="header.title")
    else:
        text.append("●  Stopped", style="status.stopped")
    return text


def build_layout(state: SessionState, screen_height: int) -> Layout:
    """Build the full-screen layout for one frame."""
    height = content_height(screen_height)
    start, window = visible_window(state.content_lines, state.content_scroll, height)
    title = content_title(state.content_title, len(state.content_lines), start, height)

    # Text objects keep user data out of markup parsing
    body = Text("\n".join(window), style="content.text", no_wrap=True, overflow="ellipsis")
    prompt_line = Text("> ", style="prompt")
    prompt_line.append(state.prompt_input)

    layout = Layout()
    layout.split_column(
        Layout(
            Panel(header_text(state), border_style="header.border"),
            name="header",
            size=HEADER_SIZE,
        ),
        Layout(
            Panel(
                body,
                title=Text(title, style="content.title"),
                title_align="left",
                border_style="content.border",
            ),
            name="content",
        ),
        Layout(
            Panel(
                prompt_line,
                title=Text(PROMPT_HINT, style="prompt.hint"),
                title_align="left",
                border_style="prompt.border",
            ),
            name="prompt",
            size=PROMPT_SIZE,
        ),
    )
    return layout


class ConsoleRenderer:
    """Draws the session on the terminal's alternate screen.

    Example:
        >>> with ConsoleRenderer(Console(theme=get_theme("nord"))) as render:
        ...     render(state)
    """

    def __init__(self, console: Console) -> None:
        self.console = console
        self._live = Live(console=console, screen=True, auto_refresh=False, transient=True)

    def __enter__(self) -> ConsoleRenderer:
        self._live.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._live.stop()

    def view_height(self) -> int:
        """Content lines visible at the current terminal size."""
        return content_height(self.console.size.height)

    def __call__(self, state: SessionState) -> None:
        layout = build_layout(state, self.console.size.height)
        self._live.update(layout, refresh=True)
