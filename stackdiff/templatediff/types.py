"""
Data model for template differences.

A ``TemplateDiff`` groups ``Difference`` records by template section. Every
model converts to and from plain dictionaries so that exclusion expressions
can address it like any other JSON document.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


class ChangeType(str, Enum):
    """How an entry changed between the deployed and the new template."""
    ADDITION = "addition"
    REMOVAL = "removal"
    MODIFICATION = "modification"


# Template section key -> TemplateDiff attribute, in rendering order
SECTIONS: Dict[str, str] = {
    "Parameters": "parameters",
    "Mappings": "mappings",
    "Conditions": "conditions",
    "Resources": "resources",
    "Outputs": "outputs",
    "Metadata": "metadata",
}

UNKNOWN_SECTION = "unknown"


def values_equal(a: Any, b: Any) -> bool:
    """
    Deep equality that keeps booleans distinct from numbers.

    ``True == 1`` in Python, but a template flipping ``1`` to ``true`` is a
    real change.
    """
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        return a.keys() == b.keys() and all(values_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (Mapping, list, tuple)) or isinstance(b, (Mapping, list, tuple)):
        return False
    return a == b


@dataclass
class Difference:
    """
    A single changed entry.

    Attributes:
        change_type: Addition, removal or modification
        old_value: Deployed value (None for additions)
        new_value: New value (None for removals)
        property_diffs: Per-property changes of a modified resource's Properties
        other_diffs: Changes to other resource attributes (Type, DependsOn, ...)
    """
    change_type: ChangeType
    old_value: Any = None
    new_value: Any = None
    property_diffs: Dict[str, "Difference"] = field(default_factory=dict)
    other_diffs: Dict[str, "Difference"] = field(default_factory=dict)

    @property
    def is_addition(self) -> bool:
        return self.change_type == ChangeType.ADDITION

    @property
    def is_removal(self) -> bool:
        return self.change_type == ChangeType.REMOVAL

    @property
    def is_update(self) -> bool:
        return self.change_type == ChangeType.MODIFICATION

    @property
    def has_nested_diffs(self) -> bool:
        return bool(self.property_diffs or self.other_diffs)

    @property
    def resource_type(self) -> Optional[str]:
        """CloudFormation type of a resource entry, preferring the new value."""
        for value in (self.new_value, self.old_value):
            if isinstance(value, Mapping) and isinstance(value.get("Type"), str):
                return value["Type"]
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, omitting absent sides and empty nested diffs."""
        result: Dict[str, Any] = {"change_type": self.change_type.value}
        if not self.is_addition:
            result["old_value"] = self.old_value
        if not self.is_removal:
            result["new_value"] = self.new_value
        if self.property_diffs:
            result["property_diffs"] = {k: v.to_dict() for k, v in self.property_diffs.items()}
        if self.other_diffs:
            result["other_diffs"] = {k: v.to_dict() for k, v in self.other_diffs.items()}
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Difference":
        return cls(
            change_type=ChangeType(data["change_type"]),
            old_value=data.get("old_value"),
            new_value=data.get("new_value"),
            property_diffs={
                k: cls.from_dict(v) for k, v in (data.get("property_diffs") or {}).items()
                if is_change_record(v)
            },
            other_diffs={
                k: cls.from_dict(v) for k, v in (data.get("other_diffs") or {}).items()
                if is_change_record(v)
            },
        )


def is_change_record(data: Any) -> bool:
    """True if ``data`` still carries a valid ``change_type``; excluded records are skipped."""
    if not isinstance(data, Mapping):
        return False
    try:
        ChangeType(data.get("change_type"))
    except ValueError:
        return False
    return True


@dataclass
class DiffSection:
    """Changes within one template section, keyed by logical ID or key."""
    changes: Dict[str, Difference] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def __len__(self) -> int:
        return len(self.changes)

    def to_dict(self) -> Dict[str, Any]:
        return {name: change.to_dict() for name, change in self.changes.items()}


@dataclass
class TemplateDiff:
    """Structured difference between two templates."""
    parameters: DiffSection = field(default_factory=DiffSection)
    mappings: DiffSection = field(default_factory=DiffSection)
    conditions: DiffSection = field(default_factory=DiffSection)
    resources: DiffSection = field(default_factory=DiffSection)
    outputs: DiffSection = field(default_factory=DiffSection)
    metadata: DiffSection = field(default_factory=DiffSection)
    unknown: DiffSection = field(default_factory=DiffSection)

    @property
    def is_empty(self) -> bool:
        return all(section.is_empty for _, section in self.sections())

    def sections(self) -> Iterator[Tuple[str, DiffSection]]:
        """Yield (name, section) pairs in rendering order."""
        for name in SECTIONS.values():
            yield name, getattr(self, name)
        yield UNKNOWN_SECTION, self.unknown

    def to_dict(self) -> Dict[str, Any]:
        """Document form of the diff, one key per section."""
        return {name: section.to_dict() for name, section in self.sections()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TemplateDiff":
        """
        Rebuild a diff from its document form.

        Missing sections are empty. A resource modification left without any
        nested difference (because every one of them was excluded) is dropped,
        as is any other modification whose old and new values now agree. Records
        whose change_type was itself excluded are dropped as well.
        """
        diff = cls()
        for name, section in diff.sections():
            for key, raw in (data.get(name) or {}).items():
                if not is_change_record(raw):
                    continue
                change = Difference.from_dict(raw)
                if change.is_update:
                    if name == "resources" and not change.has_nested_diffs:
                        continue
                    if name != "resources" and values_equal(change.old_value, change.new_value):
                        continue
                section.changes[key] = change
        return diff
