"""
Change report: tallies a template diff and persists the summary.
"""

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .templatediff import TemplateDiff


logger = logging.getLogger(__name__)


@dataclass
class ChangeReport:
    """Number of resources created, updated and deleted by a diff."""
    create: int = 0
    delete: int = 0
    update: int = 0

    @classmethod
    def from_diff(cls, diff: "TemplateDiff") -> "ChangeReport":
        """
        Classify every resource change.

        Additions count as creates, removals as deletes and anything else
        as an update. Only the resources section is considered.
        """
        report = cls()
        for change in diff.resources.changes.values():
            if change.is_addition:
                report.create += 1
            elif change.is_removal:
                report.delete += 1
            else:
                report.update += 1
        return report

    def to_dict(self) -> Dict[str, int]:
        """Convert to dict for JSON serialization."""
        return asdict(self)


class ReportWriter:
    """Writes report data as pretty-printed JSON, or does nothing without a path."""

    def __init__(self, report_path: Optional[str] = None, log: Optional[logging.Logger] = None):
        self.report_path = Path(report_path) if report_path else None
        self.log = log or logger

    def write(self, report_data: Dict[str, Any]) -> Optional[Path]:
        """
        Persist ``report_data``, overwriting any previous report.

        Write failures are logged and swallowed; the diff result does not
        depend on the report.

        Returns:
            Path written, or None when disabled or the write failed
        """
        if self.report_path is None:
            return None

        try:
            content = json.dumps(report_data, indent=4)
            self.report_path.parent.mkdir(parents=True, exist_ok=True)
            self.report_path.write_text(content, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            self.log.warning(f"Failed to write diff report to {self.report_path}: {e}")
            return None

        self.log.debug(f"Wrote diff report to {self.report_path}")
        return self.report_path
