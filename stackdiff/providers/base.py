"""
Spec provider contract.

A spec provider fetches the deployed template from its backend and diffs it
against the newly generated one. Exclusion and report persistence are shared
collaborators handed to every provider, never re-implemented by one.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..config import DiffConfig
from ..filters import ExclusionFilter
from ..report import ReportWriter


Template = Dict[str, Any]


class SpecProvider(ABC):
    """
    Base class for backend spec providers.

    Construction stores the backend registration, configuration and logger,
    then runs ``setup()`` once. A provider whose setup raises is never
    returned to the caller.
    """

    def __init__(
        self,
        backend: Any,
        config: DiffConfig,
        log: logging.Logger,
        exclusion_filter: Optional[ExclusionFilter] = None,
        report_writer: Optional[ReportWriter] = None
    ):
        """
        Args:
            backend: Backend registration (connection parameters such as region)
            config: Resolved diff configuration
            log: Logger for user-facing messages
            exclusion_filter: Filter to apply to diffs; built from config if omitted
            report_writer: Report sink; built from config if omitted
        """
        self.backend = backend
        self.config = config
        self.log = log
        self.exclusion_filter = exclusion_filter or ExclusionFilter(config.exclude_paths)
        self.report_writer = report_writer or ReportWriter(config.report_path, log)
        self.setup()

    @abstractmethod
    def setup(self) -> None:
        """Create backend client state."""

    @abstractmethod
    def diff(self, stack_name: str, new_template: Template) -> Any:
        """Diff the deployed template of ``stack_name`` against ``new_template``."""

    def _exclude(self, document: Any) -> Any:
        return self.exclusion_filter.exclude(document)

    def _generate_report(self, report_data: Dict[str, Any]) -> None:
        self.report_writer.write(report_data)
