"""AccordConsole - full-screen console for the Accord node.

Wires the session state, dispatcher, key source and renderer together,
performs the warm node start and runs the event loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rich.console import Console

from accord.core.config import ConsoleConfig
from accord.core.storage import FileStore, Store
from accord.frontends.tui.console.commands import CommandDispatcher
from accord.frontends.tui.console.keys import KeySource, TerminalKeySource
from accord.frontends.tui.console.loop import Renderer, ViewHeight, run_loop
from accord.frontends.tui.console.rendering import ConsoleRenderer
from accord.frontends.tui.console.state import SessionState
from accord.frontends.tui.console.themes import get_theme
from accord.node.engine import NodeFactory, start_loopback_node

logger = logging.getLogger(__name__)


@dataclass
class AccordConsole:
    """Interactive console driving one node.

    Example:
        >>> console = AccordConsole(config=ConsoleConfig.load(listen_port=51031))
        >>> await console.run()
    """

    config: ConsoleConfig = field(default_factory=ConsoleConfig)
    store: Store | None = None
    start_node: NodeFactory | None = None

    # Initialized in __post_init__
    console: Console = field(init=False)
    state: SessionState = field(init=False)
    dispatcher: CommandDispatcher = field(init=False)

    def __post_init__(self) -> None:
        if self.store is None:
            self.store = FileStore(self.config.data_dir)
        if self.start_node is None:
            self.start_node = start_loopback_node(self.store)
        self.console = Console(theme=get_theme(self.config.theme))
        self.state = SessionState(listen_port=self.config.listen_port)
        self.dispatcher = CommandDispatcher(
            store=self.store,
            start_node=self.start_node,
            restart_delay=self.config.restart_delay,
        )

    async def warm_start(self) -> None:
        """Start the node before the loop, unless autostart is off."""
        if not self.config.autostart:
            return
        try:
            await self.dispatcher.execute(self.state, "/startNode")
        except Exception as e:
            logger.exception("Auto-start failed")
            self.state.push_event(f"[NODE] Auto-start failed: {e}")

    async def run(self) -> None:
        """Run on the real terminal until quit.

        Raises:
            Exception: Fatal errors from terminal input.
        """
        async with TerminalKeySource() as keys:
            with ConsoleRenderer(self.console) as renderer:
                await self.run_with(keys, renderer, view_height=renderer.view_height)

    async def run_with(
        self, keys: KeySource, render: Renderer, *, view_height: ViewHeight | None = None
    ) -> None:
        """Warm start, then run the event loop on the given input and output."""
        logger.info("Console starting (port %d)", self.config.listen_port)
        await self.warm_start()
        await run_loop(
            self.state,
            self.dispatcher,
            keys,
            render,
            tick=self.config.tick_interval,
            scroll_step=self.config.scroll_step,
            view_height=view_height,
        )
        logger.info("Console exited")


async def run_console(config: ConsoleConfig | None = None) -> None:
    """Run the console TUI.

    Args:
        config: Console settings (default: loaded from environment).
    """
    console = AccordConsole(config=config or ConsoleConfig.load())
    await console.run()
