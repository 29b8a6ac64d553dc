"""Command Line Interface Package"""

from changelog_gen.cli.main import main

__all__ = ["main"]
