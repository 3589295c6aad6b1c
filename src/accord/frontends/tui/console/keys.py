"""Raw terminal key input.

Wraps a prompt_toolkit Input in raw mode and turns its callbacks into an
awaitable stream of KeyPress objects for the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import ExitStack
from typing import Protocol

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.output import Output, create_output

logger = logging.getLogger(__name__)

# Delay before a lone Escape is flushed out of the VT100 parser
ESCAPE_FLUSH_DELAY = 0.05


class KeySource(Protocol):
    """Source of key presses for the event loop."""

    async def next_key(self) -> KeyPress | None:
        """Wait for the next key press.

        Returns:
            The key press, or None once the input is exhausted.

        Raises:
            Exception: Any failure of the underlying input, which is fatal.
        """
        ...


class TerminalKeySource:
    """Key presses read from the terminal in raw mode.

    Example:
        >>> async with TerminalKeySource() as keys:
        ...     key = await keys.next_key()
    """

    def __init__(self, input: Input | None = None, output: Output | None = None) -> None:
        self._input = input
        self._output = output
        self._queue: asyncio.Queue[KeyPress | BaseException | None] = asyncio.Queue()
        self._stack = ExitStack()
        self._flush_handle: asyncio.TimerHandle | None = None
        self._eof = False

    async def __aenter__(self) -> TerminalKeySource:
        if self._input is None:
            self._input = create_input()
        if self._output is None:
            self._output = create_output()
        try:
            self._stack.enter_context(self._input.raw_mode())
            self._stack.enter_context(self._input.attach(self._on_input_ready))
            self._output.enable_bracketed_paste()
            self._output.flush()
        except BaseException:
            # __aexit__ will not run, leave cooked mode here
            self._stack.close()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        if self._output is not None:
            self._output.disable_bracketed_paste()
            self._output.flush()
        self._stack.close()

    async def next_key(self) -> KeyPress | None:
        item = await self._queue.get()
        if isinstance(item, BaseException):
            raise item
        return item

    def _on_input_ready(self) -> None:
        assert self._input is not None
        try:
            keys = self._input.read_keys()
        except Exception as e:
            logger.error("Terminal input failed: %s", e)
            self._queue.put_nowait(e)
            return

        for key_press in keys:
            self._queue.put_nowait(key_press)

        if self._input.closed:
            self._signal_eof()
            return

        # A lone Escape stays buffered until the parser is flushed
        if self._flush_handle is not None:
            self._flush_handle.cancel()
        loop = asyncio.get_running_loop()
        self._flush_handle = loop.call_later(ESCAPE_FLUSH_DELAY, self._flush)

    def _flush(self) -> None:
        assert self._input is not None
        self._flush_handle = None
        for key_press in self._input.flush_keys():
            self._queue.put_nowait(key_press)

    def _signal_eof(self) -> None:
        if self._eof:
            return
        self._eof = True
        logger.info("Terminal input closed")
        self._queue.put_nowait(None)
