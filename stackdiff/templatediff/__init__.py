"""
Template comparison for stackdiff.

Computes structural differences between CloudFormation templates and renders
them for the terminal.
"""

from .types import (
    ChangeType,
    Difference,
    DiffSection,
    TemplateDiff,
    SECTIONS,
)
from .engine import diff_template
from .render import print_differences


__all__ = [
    "ChangeType",
    "Difference",
    "DiffSection",
    "TemplateDiff",
    "SECTIONS",
    "diff_template",
    "print_differences",
]
