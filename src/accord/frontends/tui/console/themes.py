"""Pluggable theme system for the Accord console.

Themes define colors and styles for the header, content and prompt panels.
Switch themes by passing a different theme to the rich Console.
"""

from rich.theme import Theme


def create_theme(
    *,
    # Header
    header_border: str = "dim",
    header_title: str = "bold cyan",
    status_running: str = "bold green",
    status_stopped: str = "bold red",
    # Content
    content_border: str = "dim",
    content_title: str = "bold cyan",
    content_text: str = "white",
    # Prompt
    prompt_border: str = "dim",
    prompt: str = "bold green",
    prompt_hint: str = "dim",
) -> Theme:
    """Create a theme with the given styles.

    This factory allows easy theme customization while
    ensuring all required styles are defined.
    """
    return Theme(
        {
            "header.border": header_border,
            "header.title": header_title,
            "status.running": status_running,
            "status.stopped": status_stopped,
            "content.border": content_border,
            "content.title": content_title,
            "content.text": content_text,
            "prompt.border": prompt_border,
            "prompt": prompt,
            "prompt.hint": prompt_hint,
        }
    )


# =============================================================================
# Built-in Themes
# =============================================================================

DEFAULT_THEME = create_theme()

# Nord-inspired theme
NORD_THEME = create_theme(
    header_border="#4C566A",
    header_title="#88C0D0",
    status_running="#A3BE8C",
    status_stopped="#BF616A",
    content_border="#4C566A",
    content_title="#88C0D0",
    content_text="#D8DEE9",
    prompt_border="#4C566A",
    prompt="#88C0D0",
    prompt_hint="#4C566A",
)

# Dracula-inspired theme
DRACULA_THEME = create_theme(
    header_border="#6272A4",
    header_title="#8BE9FD",
    status_running="#50FA7B",
    status_stopped="#FF5555",
    content_border="#6272A4",
    content_title="#8BE9FD",
    content_text="#F8F8F2",
    prompt_border="#6272A4",
    prompt="#50FA7B",
    prompt_hint="#6272A4",
)

# Minimal monochrome theme
MONO_THEME = create_theme(
    header_title="bold",
    status_running="bold",
    status_stopped="bold",
    content_title="bold",
    prompt="bold",
)

THEMES: dict[str, Theme] = {
    "default": DEFAULT_THEME,
    "nord": NORD_THEME,
    "dracula": DRACULA_THEME,
    "mono": MONO_THEME,
}


def get_theme(name: str) -> Theme:
    """Get a theme by name.

    Args:
        name: Theme name (default, nord, dracula, mono)

    Returns:
        The theme, or DEFAULT_THEME if not found.
    """
    return THEMES.get(name.lower(), DEFAULT_THEME)
