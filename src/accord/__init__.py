"""Accord - Interactive console for the Accord peer-to-peer node.

Layers:
    core/       Pure data types, errors, configuration, persistence
    node/       Command/reply gateway to the node and a loopback node engine
    frontends/  User interfaces (full-screen console, CLI)

Quick Start:
    >>> from accord.core.config import ConsoleConfig
    >>> from accord.frontends.tui.console import AccordConsole
    >>>
    >>> console = AccordConsole(config=ConsoleConfig.load())
    >>> await console.run()
"""

from accord.__version__ import __version__

__all__ = ["__version__"]
