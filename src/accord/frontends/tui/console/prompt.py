"""Prompt editing and history navigation.

Two states: live (prompt_history_index is None, the buffer is authoritative)
and browsing (the buffer mirrors prompt_history[index]). Every function here
mutates SessionState in place and never touches the node.
"""

from __future__ import annotations

from accord.frontends.tui.console.state import SessionState

COMMAND_PREFIX = "/"


def _go_live(state: SessionState) -> None:
    state.prompt_history_index = None
    state.prompt_draft = ""


def insert_char(state: SessionState, ch: str) -> None:
    """Append a character, adding the command prefix to an empty buffer."""
    if not state.prompt_input and ch != COMMAND_PREFIX:
        state.prompt_input = COMMAND_PREFIX
    state.prompt_input += ch
    _go_live(state)


def insert_text(state: SessionState, text: str) -> None:
    """Insert pasted text one character at a time; line breaks are dropped."""
    for ch in text:
        if ch in "\r\n":
            continue
        insert_char(state, ch)


def backspace(state: SessionState) -> None:
    state.prompt_input = state.prompt_input[:-1]
    _go_live(state)


def history_up(state: SessionState) -> None:
    """Move to the previous history entry (saturating at the oldest)."""
    if not state.prompt_history:
        return
    if state.prompt_history_index is None:
        state.prompt_draft = state.prompt_input
        index = len(state.prompt_history) - 1
    else:
        index = max(state.prompt_history_index - 1, 0)
    state.prompt_history_index = index
    state.prompt_input = state.prompt_history[index]


def history_down(state: SessionState) -> None:
    """Move to the next history entry, or back to the live buffer."""
    index = state.prompt_history_index
    if index is None:
        return
    if index + 1 < len(state.prompt_history):
        state.prompt_history_index = index + 1
        state.prompt_input = state.prompt_history[index + 1]
        return
    state.prompt_input = state.prompt_draft
    _go_live(state)


def submit(state: SessionState) -> str | None:
    """Take the buffer for dispatch.

    Returns:
        The trimmed command line, or None if the buffer was blank (in which
        case nothing changes).
    """
    line = state.prompt_input.strip()
    if not line:
        return None
    if not state.prompt_history or state.prompt_history[-1] != line:
        state.prompt_history.append(line)
    state.prompt_input = ""
    _go_live(state)
    return line
