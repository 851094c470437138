"""CLI command handlers."""

from .diff import run_diff

__all__ = ['run_diff']
