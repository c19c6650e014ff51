"""CLI entry points for space-saver package."""

import sys


def main():
    """Entry point for space-saver command."""
    from space_saver.core.main import main as run
    sys.exit(run())


if __name__ == "__main__":
    main()
