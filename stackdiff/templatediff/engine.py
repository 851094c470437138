"""Structural comparison of two CloudFormation templates."""

from typing import Any, Iterable, List, Mapping, Optional

from .types import ChangeType, Difference, DiffSection, SECTIONS, TemplateDiff, values_equal


class _Missing:
    """Marker for a key absent on one side."""

    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


def diff_template(old_template: Mapping[str, Any], new_template: Mapping[str, Any]) -> TemplateDiff:
    """
    Compare a deployed template with a new one.

    Known sections are compared entry by entry; resources additionally get
    per-property differences. Any other top-level key lands in ``unknown``.

    Args:
        old_template: Currently deployed template ({} when never deployed)
        new_template: Locally generated template

    Returns:
        TemplateDiff describing every change
    """
    old = _as_mapping(old_template, "old")
    new = _as_mapping(new_template, "new")
    diff = TemplateDiff()

    for key in _union(old, new):
        old_value = old.get(key, MISSING)
        new_value = new.get(key, MISSING)
        attr = SECTIONS.get(key)

        if attr is None or not _mapping_or_missing(old_value) or not _mapping_or_missing(new_value):
            change = diff_value(old_value, new_value)
            if change is not None:
                diff.unknown.changes[key] = change
            continue

        section: DiffSection = getattr(diff, attr)
        old_entries = {} if old_value is MISSING else old_value
        new_entries = {} if new_value is MISSING else new_value
        for name in _union(old_entries, new_entries):
            compare = diff_resource if attr == "resources" else diff_value
            change = compare(old_entries.get(name, MISSING), new_entries.get(name, MISSING))
            if change is not None:
                section.changes[name] = change

    return diff


def diff_value(old: Any, new: Any) -> Optional[Difference]:
    """Difference between two values, or None when they are equal."""
    if old is MISSING and new is MISSING:
        return None
    if old is MISSING:
        return Difference(ChangeType.ADDITION, new_value=new)
    if new is MISSING:
        return Difference(ChangeType.REMOVAL, old_value=old)
    if values_equal(old, new):
        return None
    return Difference(ChangeType.MODIFICATION, old_value=old, new_value=new)


def diff_resource(old: Any, new: Any) -> Optional[Difference]:
    """Difference between two resource definitions, with property-level detail."""
    change = diff_value(old, new)
    if change is None or not change.is_update:
        return change

    if not isinstance(old, Mapping) or not isinstance(new, Mapping):
        change.other_diffs["Definition"] = Difference(
            ChangeType.MODIFICATION, old_value=old, new_value=new
        )
        return change

    old_props = old.get("Properties", MISSING)
    new_props = new.get("Properties", MISSING)
    if _mapping_or_missing(old_props) and _mapping_or_missing(new_props):
        old_props = {} if old_props is MISSING else old_props
        new_props = {} if new_props is MISSING else new_props
        for name in _union(old_props, new_props):
            prop = diff_value(old_props.get(name, MISSING), new_props.get(name, MISSING))
            if prop is not None:
                change.property_diffs[name] = prop
        attributes = [k for k in _union(old, new) if k != "Properties"]
    else:
        attributes = list(_union(old, new))

    for name in attributes:
        other = diff_value(old.get(name, MISSING), new.get(name, MISSING))
        if other is not None:
            change.other_diffs[name] = other

    return change


def _as_mapping(template: Any, label: str) -> Mapping[str, Any]:
    if template is None:
        return {}
    if not isinstance(template, Mapping):
        raise TypeError(f"{label} template must be a mapping, got {type(template).__name__}")
    return template


def _mapping_or_missing(value: Any) -> bool:
    return value is MISSING or isinstance(value, Mapping)


def _union(old: Iterable[str], new: Iterable[str]) -> List[str]:
    """Keys of both sides, old order first, then keys only in new."""
    keys = list(old)
    seen = set(keys)
    keys.extend(k for k in new if k not in seen)
    return keys
