"""Console configuration.

Values resolve with priority: explicit argument > environment > default.
A ``.env`` file in the working directory is loaded first, so ACCORD_*
variables may live there.

Environment Variables:
    ACCORD_PORT: Node listen port (1-65535, default 51030)
    ACCORD_DATA_DIR: Directory for local records (default ~/.accord)
    ACCORD_THEME: Console theme (default, nord, dracula, mono)
    ACCORD_AUTOSTART: Start the node on launch ("0" disables)
    ACCORD_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    ACCORD_LOG_FILE: Log file path (default <data_dir>/console.log)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

DEFAULT_PORT = 51030
DEFAULT_DATA_DIR = Path.home() / ".accord"


def parse_port(value: Any) -> int:
    """Parse a listen port.

    Raises:
        ValueError: If value is not an integer in 1-65535.
    """
    try:
        port = int(str(value).strip())
    except ValueError:
        raise ValueError(f"'{value}' is not a valid port number (1–65535).") from None
    if not 1 <= port <= 65535:
        raise ValueError("Port must be between 1 and 65535.")
    return port


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass
class ConsoleConfig:
    """Settings for one console session.

    Attributes:
        listen_port: TCP port the node listens on.
        data_dir: Root directory of the persistence collaborator.
        theme: Theme name for the render boundary.
        tick_interval: Minimum redraw cadence in seconds.
        scroll_step: Lines moved by PageUp/PageDown.
        restart_delay: Pause between stop and start on restart, in seconds.
        autostart: Run /startNode before entering the loop.
        log_file: Where log records go while the console owns the terminal.
        log_level: Root log level.
    """

    listen_port: int = DEFAULT_PORT
    data_dir: Path = DEFAULT_DATA_DIR
    theme: str = "default"
    tick_interval: float = 0.25
    scroll_step: int = 10
    restart_delay: float = 0.2
    autostart: bool = True
    log_file: Path | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.listen_port = parse_port(self.listen_port)
        self.data_dir = Path(self.data_dir).expanduser()
        if self.log_file is None:
            self.log_file = self.data_dir / "console.log"

    @classmethod
    def load(
        cls,
        *,
        listen_port: int | None = None,
        data_dir: Path | str | None = None,
        theme: str | None = None,
        autostart: bool | None = None,
        log_level: str | None = None,
        log_file: Path | str | None = None,
    ) -> ConsoleConfig:
        """Build a config from arguments, environment and defaults.

        Raises:
            ValueError: If a port value is invalid.
        """
        load_dotenv(find_dotenv(usecwd=True))

        def get_value(arg: Any, env_key: str, default: Any) -> Any:
            if arg is not None:
                return arg
            env_val = os.environ.get(env_key)
            if env_val:
                return env_val
            return default

        env_autostart = os.environ.get("ACCORD_AUTOSTART")
        if autostart is None:
            autostart = _parse_bool(env_autostart) if env_autostart is not None else True

        log_path = get_value(log_file, "ACCORD_LOG_FILE", None)

        return cls(
            listen_port=get_value(listen_port, "ACCORD_PORT", DEFAULT_PORT),
            data_dir=Path(get_value(data_dir, "ACCORD_DATA_DIR", DEFAULT_DATA_DIR)),
            theme=get_value(theme, "ACCORD_THEME", "default"),
            autostart=autostart,
            log_level=str(get_value(log_level, "ACCORD_LOG_LEVEL", "INFO")).upper(),
            log_file=Path(log_path).expanduser() if log_path else None,
        )
