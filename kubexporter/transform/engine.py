"""
Transform Engine

Applies the configured transformations to one resource instance in a
fixed order: exclude, mask, encrypt, sort slices. Instance level
exclusion is decided before any of these run.

The engine only reads the export configuration, so one engine can be
shared by all workers.
"""

import copy
from datetime import datetime, timezone
from numbers import Number
from typing import Any, Dict, List, Optional

from kubexporter.document import canonical_json, get, remove, render_value, restore, transform
from kubexporter.model import GroupResource, parse_group_version


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _sort_key(values: List[Any]):
    if all(isinstance(v, str) for v in values):
        return None
    if all(isinstance(v, Number) and not isinstance(v, bool) for v in values):
        return None
    return canonical_json


class TransformEngine:
    """Per instance exclusion and field transformation"""

    def __init__(self, config):
        self.config = config

    def is_instance_excluded(self, res: GroupResource, doc: Dict[str, Any],
                             now: Optional[datetime] = None) -> bool:
        """
        Check if the whole instance is dropped

        An instance is excluded when one of its owners is an excluded kind,
        when it is older than createdWithin, or when one of the kind's
        field value filters matches.
        """
        if self._excluded_by_owner(doc):
            return True

        if self.config.created_within:
            created = _parse_timestamp((doc.get('metadata') or {}).get('creationTimestamp'))
            now = now or datetime.now(timezone.utc)
            if created is not None and created < now - self.config.created_within:
                return True

        for fv in self.config.excluded.kinds_by_field.get(res.group_kind, []):
            value, found = get(doc, fv.path)
            if found and value is not None and render_value(value) in fv.values:
                return True
        return False

    def _excluded_by_owner(self, doc: Dict[str, Any]) -> bool:
        if not self.config.consider_owner_references:
            return False
        for ref in (doc.get('metadata') or {}).get('ownerReferences') or []:
            try:
                group, version = parse_group_version(ref.get('apiVersion') or '')
            except ValueError:
                continue
            owner = GroupResource(api_group=group, api_version=version, kind=ref.get('kind') or '')
            if self.config.is_excluded(owner):
                return True
        return False

    def exclude_fields(self, res: GroupResource, doc: Dict[str, Any]) -> None:
        excluded = self.config.excluded
        paths = excluded.fields + excluded.kind_fields.fields_for(res.group_kind)
        # only preserved paths below an excluded one need restoring
        preserved = [p for p in excluded.preserved_fields
                     if any(p[:len(e)] == e for e in paths)]
        snapshot = copy.deepcopy(doc) if preserved else None

        for path in paths:
            remove(doc, path)

        for path in preserved:
            restore(doc, snapshot, path)

    def mask_fields(self, res: GroupResource, doc: Dict[str, Any]) -> None:
        masked = self.config.masked
        for path in masked.kind_fields.fields_for(res.group_kind):
            transform(doc, path, masked.mask)

    def encrypt_fields(self, res: GroupResource, doc: Dict[str, Any]) -> None:
        encrypted = self.config.encrypted
        for path in encrypted.kind_fields.fields_for(res.group_kind):
            transform(doc, path, encrypted.encrypt_field)

    def sort_slice_fields(self, res: GroupResource, doc: Dict[str, Any]) -> None:
        for path in self.config.sort_slices.fields_for(res.group_kind):
            value, found = get(doc, path)
            if found and isinstance(value, list) and value:
                value.sort(key=_sort_key(value))

    def apply(self, res: GroupResource, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Run all field transformations in order, modifying doc in place"""
        self.exclude_fields(res, doc)
        self.mask_fields(res, doc)
        self.encrypt_fields(res, doc)
        self.sort_slice_fields(res, doc)
        return doc
