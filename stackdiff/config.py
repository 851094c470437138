"""
Diff configuration.

Merges built-in defaults with the service's ``custom.diff`` section and
freezes the result into a ``DiffConfig`` that providers only ever read.
"""

import copy
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .exceptions import ConfigValidationError, ValidationError


logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "providersPath": "stackdiff.providers",
}

# Keys understood by the core; everything else is passed to the provider untouched
CORE_KEYS = {"excludes", "excludePaths", "reportPath", "providersPath"}


@dataclass(frozen=True)
class DiffConfig:
    """
    Resolved diff configuration.

    Attributes:
        exclude_paths: JSONPath expressions removed from the diff before reporting
        report_path: Where to write the machine-readable report (None disables it)
        providers_path: Dotted module path searched for spec providers
        options: Provider-specific options (e.g. tableWidth), read-only
    """
    exclude_paths: Tuple[str, ...] = ()
    report_path: Optional[str] = None
    providers_path: str = DEFAULTS["providersPath"]
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a provider-specific option."""
        return self.options.get(key, default)


def merge_config(
    user_config: Optional[Mapping[str, Any]],
    overrides: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """
    Merge defaults, user configuration and command-line overrides.

    Later sources win; None values in overrides are ignored so unset
    CLI flags never clobber the file.

    Args:
        user_config: ``custom.diff`` mapping from the service definition
        overrides: Values from the command line

    Returns:
        Merged plain dictionary
    """
    merged = copy.deepcopy(DEFAULTS)
    if user_config:
        merged.update(copy.deepcopy(dict(user_config)))

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key in ("excludes", "excludePaths"):
            # Command-line exclusions extend the configured ones. When the file
            # sets both keys, both are kept so build_config reports the conflict.
            source = "excludes"
            if "excludePaths" in merged and "excludes" not in merged:
                source = "excludePaths"
            existing = merged.pop(source, None) or []
            if not isinstance(existing, list):
                merged[source] = existing
                continue
            merged["excludes"] = existing + list(value)
        else:
            merged[key] = value

    logger.debug(f"Merged diff configuration: {merged}")
    return merged


def _freeze(value: Any) -> Any:
    """Read-only deep copy: mappings become proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return copy.deepcopy(value)


def build_config(raw: Optional[Mapping[str, Any]]) -> DiffConfig:
    """
    Validate a merged configuration mapping and freeze it.

    Raises:
        ConfigValidationError: If any field has the wrong shape
    """
    raw = dict(raw or {})
    errors: List[ValidationError] = []

    if "excludes" in raw and "excludePaths" in raw:
        errors.append(ValidationError(
            "use either 'excludes' or 'excludePaths', not both", "custom.diff"
        ))

    excludes = raw.get("excludes", raw.get("excludePaths")) or []
    if not isinstance(excludes, list):
        errors.append(ValidationError("must be a list of JSONPath strings", "custom.diff.excludes"))
        excludes = []
    else:
        for i, path in enumerate(excludes):
            if not isinstance(path, str) or not path.strip():
                errors.append(ValidationError(
                    "must be a non-empty string", f"custom.diff.excludes[{i}]"
                ))

    report_path = raw.get("reportPath")
    if report_path is not None and (not isinstance(report_path, str) or not report_path):
        errors.append(ValidationError("must be a non-empty string", "custom.diff.reportPath"))

    providers_path = raw.get("providersPath") or DEFAULTS["providersPath"]
    if not isinstance(providers_path, str):
        errors.append(ValidationError("must be a dotted module path", "custom.diff.providersPath"))

    table_width = raw.get("tableWidth")
    if table_width is not None:
        if isinstance(table_width, bool) or not isinstance(table_width, int) or table_width <= 0:
            errors.append(ValidationError("must be a positive integer", "custom.diff.tableWidth"))

    if errors:
        raise ConfigValidationError(errors)

    options = {k: _freeze(v) for k, v in raw.items() if k not in CORE_KEYS}

    return DiffConfig(
        exclude_paths=tuple(excludes),
        report_path=report_path,
        providers_path=providers_path,
        options=MappingProxyType(options),
    )
