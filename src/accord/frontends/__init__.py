"""Frontends - User interfaces for accord.

Submodules:
    tui/    Full-screen terminal console
    cli/    Command-line entry point
"""
