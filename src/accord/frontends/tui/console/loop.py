"""Event loop for the Accord console.

Each iteration renders the session, then waits for the first of a tick or a
key press. Quit keys, paging keys and the prompt are handled here; command
lines go to the dispatcher.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from accord.frontends.tui.console import prompt
from accord.frontends.tui.console.commands import CommandDispatcher
from accord.frontends.tui.console.keys import KeySource
from accord.frontends.tui.console.rendering import max_scroll
from accord.frontends.tui.console.state import SessionState

logger = logging.getLogger(__name__)

# Render callback: reads the session, never mutates it
Renderer = Callable[[SessionState], None]

# Lines the content view currently shows
ViewHeight = Callable[[], int]

QUIT_KEYS = frozenset({Keys.ControlC, Keys.Escape})
SUBMIT_KEYS = frozenset({Keys.ControlM, Keys.ControlJ})


def scroll_content(state: SessionState, step: int, view_height: int | None) -> None:
    """Move the content view by step lines, saturating at the first and last page.

    A stored offset past the last page (as left by /events) counts as the last
    page, so the first PageUp always moves the view. Without a view height the
    upper bound is the last line.
    """
    if view_height is None:
        limit = max(len(state.content_lines) - 1, 0)
    else:
        limit = max_scroll(len(state.content_lines), view_height)
    current = min(max(state.content_scroll, 0), limit)
    state.content_scroll = min(max(current + step, 0), limit)


async def run_command(state: SessionState, dispatcher: CommandDispatcher, line: str) -> None:
    """Dispatch one command line; failures are reported and the session continues."""
    try:
        await dispatcher.execute(state, line)
    except Exception as e:
        logger.exception("Command failed: %s", line)
        msg = f"Error: {e}"
        state.push_event(f"[ERR] {e}")
        state.push_output(msg)
        state.content_lines.append(msg)


async def handle_key(
    state: SessionState,
    dispatcher: CommandDispatcher,
    key_press: KeyPress,
    scroll_step: int,
    view_height: int | None = None,
) -> None:
    """Apply one key press to the session."""
    key = key_press.key

    if key in QUIT_KEYS:
        state.should_quit = True
    elif key == Keys.PageUp:
        scroll_content(state, -scroll_step, view_height)
    elif key == Keys.PageDown:
        scroll_content(state, scroll_step, view_height)
    elif key == Keys.Up:
        prompt.history_up(state)
    elif key == Keys.Down:
        prompt.history_down(state)
    elif key == Keys.ControlH:
        prompt.backspace(state)
    elif key in SUBMIT_KEYS:
        line = prompt.submit(state)
        if line is not None:
            await run_command(state, dispatcher, line)
    elif key == Keys.BracketedPaste:
        prompt.insert_text(state, key_press.data)
    elif not isinstance(key, Keys) and len(key) == 1 and key.isprintable():
        prompt.insert_char(state, key)


async def run_loop(
    state: SessionState,
    dispatcher: CommandDispatcher,
    keys: KeySource,
    render: Renderer,
    *,
    tick: float = 0.25,
    scroll_step: int = 10,
    view_height: ViewHeight | None = None,
) -> None:
    """Run until quit or until the key source is exhausted.

    view_height, when given, reports how many content lines the screen shows
    so paging stops at the last visible page.

    Raises:
        Exception: Whatever the key source raises; input failures are fatal.
    """
    while not state.should_quit:
        render(state)
        try:
            key_press = await asyncio.wait_for(keys.next_key(), timeout=tick)
        except asyncio.TimeoutError:
            continue
        if key_press is None:
            logger.info("Input exhausted, leaving console")
            break
        height = view_height() if view_height is not None else None
        await handle_key(state, dispatcher, key_press, scroll_step, height)
