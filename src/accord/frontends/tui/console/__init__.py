"""Console - full-screen command console for the Accord node.

Slash commands typed at the prompt drive the node and render users,
connections, messages and logs into a scrollable content view.
"""

from accord.frontends.tui.console.commands import COMMANDS, CommandDispatcher
from accord.frontends.tui.console.console import AccordConsole, run_console
from accord.frontends.tui.console.state import SessionState
from accord.frontends.tui.console.themes import (
    DEFAULT_THEME,
    DRACULA_THEME,
    MONO_THEME,
    NORD_THEME,
    THEMES,
    create_theme,
    get_theme,
)

__all__ = [
    # Core
    "AccordConsole",
    "run_console",
    "CommandDispatcher",
    "COMMANDS",
    "SessionState",
    # Themes
    "create_theme",
    "get_theme",
    "THEMES",
    "DEFAULT_THEME",
    "NORD_THEME",
    "DRACULA_THEME",
    "MONO_THEME",
]
