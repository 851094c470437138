"""Tests for change classification and report writing."""

import json
import logging
from unittest.mock import MagicMock

from stackdiff.report import ChangeReport, ReportWriter
from stackdiff.templatediff import ChangeType, Difference, DiffSection, TemplateDiff, diff_template


def lambda_function(runtime="python3.9"):
    return {
        "Type": "AWS::Lambda::Function",
        "Properties": {"Handler": "index.handler", "Runtime": runtime},
    }


class TestChangeReport:
    """Classification is a pure tally of resource changes."""

    def test_create_update_delete(self):
        """One addition, removal and modification each."""
        diff = diff_template(
            {"Resources": {"Test": lambda_function(), "TestDelete": lambda_function()}},
            {"Resources": {"Test": lambda_function("python3.8"), "TestCreate": lambda_function()}},
        )

        assert ChangeReport.from_diff(diff).to_dict() == {"create": 1, "delete": 1, "update": 1}

    def test_order_independent(self):
        """Iteration order of the change-set does not affect the counts."""
        changes = [
            ("A", Difference(ChangeType.ADDITION, new_value={})),
            ("B", Difference(ChangeType.ADDITION, new_value={})),
            ("C", Difference(ChangeType.REMOVAL, old_value={})),
            ("D", Difference(ChangeType.MODIFICATION, old_value=1, new_value=2)),
        ]
        forward = TemplateDiff(resources=DiffSection(dict(changes)))
        backward = TemplateDiff(resources=DiffSection(dict(reversed(changes))))

        assert ChangeReport.from_diff(forward) == ChangeReport.from_diff(backward)
        assert ChangeReport.from_diff(forward) == ChangeReport(create=2, delete=1, update=1)

    def test_other_sections_not_counted(self):
        """Only resources are classified."""
        diff = diff_template({"Outputs": {"Url": {"Value": "a"}}}, {"Outputs": {"Url": {"Value": "b"}}})

        assert ChangeReport.from_diff(diff).to_dict() == {"create": 0, "delete": 0, "update": 0}


class TestReportWriter:
    """The writer persists JSON or does nothing without a path."""

    def test_no_path_writes_nothing(self, tmp_path, monkeypatch):
        """No configured path leaves the filesystem untouched."""
        monkeypatch.chdir(tmp_path)

        result = ReportWriter(None).write({"create": 1})

        assert result is None
        assert list(tmp_path.iterdir()) == []

    def test_round_trip(self, tmp_path):
        """The written file parses back to the input object."""
        report_path = tmp_path / "report.json"
        data = {"foo": "bar-1234", "create": 2}

        ReportWriter(str(report_path)).write(data)

        assert json.loads(report_path.read_text()) == data

    def test_pretty_printed_and_overwritten(self, tmp_path):
        """Output is indented and replaces any earlier report."""
        report_path = tmp_path / "report.json"
        report_path.write_text("stale content that is longer than the new report")

        ReportWriter(str(report_path)).write({"create": 0})

        assert report_path.read_text() == '{\n    "create": 0\n}'

    def test_creates_parent_directories(self, tmp_path):
        """Missing parent directories are created."""
        report_path = tmp_path / "reports" / "nested" / "diff.json"

        ReportWriter(str(report_path)).write({"update": 3})

        assert json.loads(report_path.read_text()) == {"update": 3}

    def test_write_failure_is_logged_not_raised(self, tmp_path):
        """A failed write is a warning, never an exception."""
        log = MagicMock(spec=logging.Logger)
        # A directory cannot be opened for writing
        writer = ReportWriter(str(tmp_path), log)

        assert writer.write({"create": 1}) is None
        log.warning.assert_called_once()
        assert "Failed to write diff report" in log.warning.call_args[0][0]
