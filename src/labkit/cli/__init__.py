"""
CLI commands for labkit.
"""

from labkit.cli.prep import clean_command, prep_command

__all__ = [
    "prep_command",
    "clean_command",
]
