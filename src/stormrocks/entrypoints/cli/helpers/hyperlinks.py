"""OSC-8 hyperlink utilities for the StormRocks CLI.

Detects whether the active text stream supports OSC-8 terminal hyperlinks and
renders URLs as clickable links, falling back to plain text when unsupported.
"""

import os
import sys
from typing import TextIO

OSC8_TERMINALS = frozenset({"apple_terminal", "vscode", "iterm.app", "wezterm", "kitty"})


def supports_osc8(stream: TextIO | None = None) -> bool:
    """Heuristically detect whether the target stream supports OSC-8 hyperlinks.

    Args:
        stream: File-like text stream to probe; defaults to ``sys.stdout``.

    Returns:
        bool: ``True`` if hyperlinks should be emitted; ``False`` otherwise
        (always ``False`` when the stream is not a TTY).
    """
    stream = stream or sys.stdout
    if not getattr(stream, "isatty", lambda: False)():
        return False
    terminal_program = (os.getenv("TERM_PROGRAM") or "").lower()
    return bool(
        terminal_program in OSC8_TERMINALS
        or os.getenv("WT_SESSION")  # Windows Terminal
        or os.getenv("VTE_VERSION")  # GNOME Terminal, Tilix, etc.
        or os.getenv("TERM", "").startswith(("alacritty", "konsole"))
    )


def hyperlink(url: str, label: str | None = None) -> str:
    """Return ``url`` as an OSC-8 hyperlink, or plain text when unsupported.

    Args:
        url: Target URL.
        label: Visible text (defaults to the URL; ignored in the fallback).
    """
    if not supports_osc8():
        return url
    return f"\x1b]8;;{url}\x07{label or url}\x1b]8;;\x07"  # OSC 8 ; ; URL BEL
