"""
Field Maps

KindFields maps a group kind ('apps.Deployment', 'Secret') to the field
paths configured for it. The same structure drives exclusion, masking,
encryption and slice sorting.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

FieldPathList = List[List[str]]


def parse_field_path(value: Any) -> List[str]:
    """
    Normalize a configured field path

    Accepts a list of segments or a dotted string. Use the list form when a
    segment itself contains dots (annotation keys for instance).
    """
    if isinstance(value, str):
        segments = [s for s in value.split('.') if s]
    elif isinstance(value, (list, tuple)):
        segments = [str(s) for s in value]
    else:
        raise ValueError(f"invalid field path {value!r}")
    if not segments:
        raise ValueError("field path must not be empty")
    return segments


def parse_field_paths(values: Optional[Iterable[Any]]) -> FieldPathList:
    return [parse_field_path(v) for v in (values or [])]


def _is_prefix(prefix: List[str], path: List[str]) -> bool:
    return len(prefix) <= len(path) and path[:len(prefix)] == prefix


class KindFields(Dict[str, FieldPathList]):
    """Map kinds to fields"""

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> 'KindFields':
        kf = cls()
        for kind, paths in (data or {}).items():
            kf[str(kind)] = parse_field_paths(paths)
        return kf

    def fields_for(self, group_kind: str) -> FieldPathList:
        return self.get(group_kind) or []

    def diff(self, other: 'KindFields') -> 'KindFields':
        """
        Return the fields of other that are not already covered by this map

        A field of other is covered when one of this map's fields for the
        same kind is a segment-wise prefix of it. Kinds that exist only in
        other are kept unchanged; other itself is not modified.
        """
        result = KindFields()
        for kind, other_fields in other.items():
            mine = self.get(kind)
            if mine:
                kept = [o for o in other_fields
                        if not any(_is_prefix(f, o) for f in mine)]
            else:
                kept = list(other_fields)
            if kept:
                result[kind] = kept
        return result

    def __str__(self) -> str:
        kinds = []
        for kind, paths in self.items():
            joined = ", ".join(f"[{','.join(p)}]" for p in paths)
            kinds.append(f"{kind}: [{joined}]")
        return ", ".join(sorted(kinds))


@dataclass
class FieldValue:
    """Field with the values that exclude an instance"""
    path: List[str]
    values: List[str] = field(default_factory=list)

    @classmethod
    def from_config(cls, data: Dict[str, Any]) -> 'FieldValue':
        return cls(
            path=parse_field_path(data.get('field')),
            values=[str(v) for v in (data.get('values') or [])],
        )
