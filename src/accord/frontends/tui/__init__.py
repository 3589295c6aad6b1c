"""TUI frontends for accord.

Full-screen terminal user interfaces.
"""

from accord.frontends.tui.console import AccordConsole, run_console

__all__ = ["AccordConsole", "run_console"]
