"""Human-readable rendering of template differences."""

import json
from typing import Any, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .types import ChangeType, Difference, TemplateDiff


SYMBOLS = {
    ChangeType.ADDITION: ("[+]", "green"),
    ChangeType.REMOVAL: ("[-]", "red"),
    ChangeType.MODIFICATION: ("[~]", "yellow"),
}

TITLES = {
    "parameters": "Parameters",
    "mappings": "Mappings",
    "conditions": "Conditions",
    "resources": "Resources",
    "outputs": "Outputs",
    "metadata": "Metadata",
    "unknown": "Other Changes",
}


def print_differences(
    diff: TemplateDiff,
    width: Optional[int] = None,
    console: Optional[Console] = None
) -> None:
    """
    Print one table per non-empty section of ``diff`` to stdout.

    Args:
        diff: Differences to render
        width: Fixed console width; detected from the terminal when None
        console: Console to print to instead of a fresh stdout console
    """
    console = console or Console(width=width, highlight=False)

    for name, section in diff.sections():
        if section.is_empty:
            continue

        is_resources = name == "resources"
        table = Table(title=TITLES[name], title_justify="left")
        table.add_column("", no_wrap=True)
        table.add_column("Logical ID")
        if is_resources:
            table.add_column("Type")
        table.add_column("Details")

        for key, change in section.changes.items():
            symbol, style = SYMBOLS[change.change_type]
            row = [Text(symbol, style=style), Text(key)]
            if is_resources:
                row.append(Text(change.resource_type or ""))
            row.append(Text("\n".join(describe(change, include_values=not is_resources))))
            table.add_row(*row)

        console.print(table)


def describe(change: Difference, include_values: bool = True) -> List[str]:
    """Detail lines for one change."""
    if change.has_nested_diffs:
        lines = []
        for prop, sub in change.property_diffs.items():
            lines.append(f"Properties.{prop}: {_transition(sub)}")
        for attr, sub in change.other_diffs.items():
            lines.append(f"{attr}: {_transition(sub)}")
        return lines

    if not include_values:
        return []
    return [_transition(change)]


def _transition(change: Difference) -> str:
    if change.is_addition:
        return f"(added) {format_value(change.new_value)}"
    if change.is_removal:
        return f"(removed) {format_value(change.old_value)}"
    return f"{format_value(change.old_value)} -> {format_value(change.new_value)}"


def format_value(value: Any) -> str:
    """Compact JSON rendering of a template value."""
    return json.dumps(value, separators=(",", ":"), default=str)
