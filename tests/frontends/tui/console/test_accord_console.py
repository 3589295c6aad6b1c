"""Tests for AccordConsole wiring and warm start."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from accord.core.config import ConsoleConfig
from accord.core.errors import NodeStartError
from accord.frontends.tui.console import AccordConsole
from accord.node.engine import start_loopback_node


class EscapeOnly:
    """Key source that quits on the first read."""

    async def next_key(self):
        return KeyPress(Keys.Escape)


@pytest.fixture
def config(tmp_path):
    return ConsoleConfig(listen_port=51032, data_dir=tmp_path / "data", restart_delay=0)


class TestAccordConsole:
    """Tests for AccordConsole."""

    def test_defaults_to_file_store(self, config):
        console = AccordConsole(config=config)
        assert console.store.root == config.data_dir
        assert console.state.listen_port == 51032
        assert console.dispatcher.restart_delay == 0

    @pytest.mark.asyncio
    async def test_warm_start(self, config, store):
        console = AccordConsole(
            config=config, store=store, start_node=start_loopback_node(store, listen=False)
        )
        frames = []

        await console.run_with(EscapeOnly(), frames.append)

        assert console.state.node_running
        assert console.state.node_status.address == "/ip4/0.0.0.0/tcp/51032"
        assert len(frames) == 1
        assert console.state.should_quit

    @pytest.mark.asyncio
    async def test_no_autostart(self, config, store):
        config.autostart = False
        factory = AsyncMock()
        console = AccordConsole(config=config, store=store, start_node=factory)

        await console.run_with(EscapeOnly(), lambda s: None)

        factory.assert_not_called()
        assert not console.state.node_running

    @pytest.mark.asyncio
    async def test_failed_warm_start_keeps_session(self, config, store):
        factory = AsyncMock(side_effect=NodeStartError("port in use"))
        console = AccordConsole(config=config, store=store, start_node=factory)

        await console.run_with(EscapeOnly(), lambda s: None)

        assert not console.state.node_running
        assert "[NODE] Start failed: port in use" in console.state.events

    @pytest.mark.asyncio
    async def test_unexpected_warm_start_error(self, config, store):
        factory = AsyncMock(side_effect=RuntimeError("loop closed"))
        console = AccordConsole(config=config, store=store, start_node=factory)

        await console.warm_start()

        assert console.state.events[-1] == "[NODE] Auto-start failed: loop closed"
