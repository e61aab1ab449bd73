"""
Terminal UI (TUI) for ATP Explorer.

Run with: python -m atp_explorer.tui.app
"""

__all__ = ["main"]


def main():
    """Launch the TUI (requires textual)."""
    from atp_explorer.tui.app import main as _main
    _main()
