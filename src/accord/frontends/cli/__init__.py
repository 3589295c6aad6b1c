"""CLI frontend for accord.

Commands:
    accord console    Full-screen command console

Example:
    $ accord console --port 51031 --theme nord
"""

from accord.frontends.cli.main import main

__all__ = ["main"]
