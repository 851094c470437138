"""
Exclusion filter.

Removes every subtree selected by the configured JSONPath expressions from a
copy of a document. Used to silence known-noisy differences before they are
classified and reported.
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from jsonpath_ng.jsonpath import Fields, Index
from jsonpath_ng.ext import parse

from .exceptions import ConfigValidationError, ValidationError


logger = logging.getLogger(__name__)

Key = Union[str, int]


class ExclusionFilter:
    """
    Deletes JSONPath matches from documents.

    Expressions are compiled once; ``exclude`` can be called any number of
    times and never touches the caller's value.
    """

    def __init__(self, paths: Iterable[str] = ()):
        """
        Compile exclusion expressions.

        Args:
            paths: JSONPath expressions, applied in order

        Raises:
            ConfigValidationError: If any expression cannot be parsed
        """
        self.paths: Tuple[str, ...] = tuple(paths)
        self._expressions = []

        errors: List[ValidationError] = []
        for i, path in enumerate(self.paths):
            try:
                self._expressions.append((path, parse(path)))
            except Exception as e:
                errors.append(ValidationError(
                    f"invalid JSONPath '{path}': {e}", f"custom.diff.excludes[{i}]"
                ))

        if errors:
            raise ConfigValidationError(errors)

    def exclude(self, document: Any) -> Any:
        """
        Return a copy of ``document`` with every excluded path removed.

        Expressions that match nothing are ignored.
        """
        data = copy.deepcopy(document)

        for path, expression in self._expressions:
            matches = expression.find(data)
            if not matches:
                logger.debug(f"Exclusion '{path}' matched nothing")
                continue

            removed = self._delete_matches(matches)
            logger.debug(f"Exclusion '{path}' removed {removed} entr{'y' if removed == 1 else 'ies'}")

        return data

    def _delete_matches(self, matches) -> int:
        """Delete matched entries from their parent containers."""
        # Group by parent so list indices can be removed back to front
        targets: Dict[int, Tuple[Any, List[Key]]] = {}
        for match in matches:
            if match.context is None:
                # The root itself has no parent to delete it from
                continue
            key = _match_key(match)
            if key is None:
                continue
            parent = match.context.value
            keys = targets.setdefault(id(parent), (parent, []))[1]
            if key not in keys:
                keys.append(key)

        removed = 0
        for parent, keys in targets.values():
            if isinstance(parent, list):
                for index in sorted((k for k in keys if isinstance(k, int)), reverse=True):
                    if -len(parent) <= index < len(parent):
                        del parent[index]
                        removed += 1
            elif isinstance(parent, dict):
                for key in keys:
                    if key in parent:
                        del parent[key]
                        removed += 1
        return removed


def _match_key(match) -> Optional[Key]:
    """Property name or list index a match occupies inside its parent."""
    path = match.path
    if isinstance(path, Fields):
        return path.fields[0]
    if isinstance(path, Index):
        indices = getattr(path, "indices", None)
        return indices[0] if indices else path.index
    return None
