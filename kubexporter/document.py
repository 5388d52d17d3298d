"""
Document Tree Utilities

Generic operations over schema-less cluster documents. A document is a
JSON-like Python value: dict (str keys), list, str, int, float, bool or None.
Everything read from the cluster or from disk is normalized into that shape
by normalize() before any other function here touches it.

The two primitives remove() and transform() are slice aware: when an
intermediate path segment resolves to a list, the remaining suffix of the
path is applied to every dict element of that list.
"""

import copy
import json
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Sequence, Tuple

FieldPath = Sequence[str]


def normalize(value: Any) -> Any:
    """Convert a loaded value into plain JSON-like types"""
    if isinstance(value, dict):
        return {str(k): normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat(timespec='seconds') + 'Z'
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode('utf-8', 'replace')
    return value


def render_value(value: Any) -> str:
    """Render a value as the string used for masking, encryption and filters"""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return ''
    if isinstance(value, (int, float)):
        return str(value)
    return canonical_json(value)


def canonical_json(value: Any) -> str:
    """Compact JSON with sorted keys, stable for equal structures"""
    return json.dumps(value, sort_keys=True, separators=(',', ':'), default=str)


def get(doc: Dict[str, Any], path: FieldPath) -> Tuple[Any, bool]:
    """
    Look up the value at path, walking through dicts only

    Returns:
        Tuple of (value, found)
    """
    current: Any = doc
    for field in path:
        if not isinstance(current, dict) or field not in current:
            return None, False
        current = current[field]
    return current, True


def set_value(doc: Dict[str, Any], path: FieldPath, value: Any) -> None:
    """Set the value at path, creating intermediate dicts where missing"""
    current = doc
    for field in path[:-1]:
        nxt = current.get(field)
        if not isinstance(nxt, dict):
            nxt = {}
            current[field] = nxt
        current = nxt
    current[path[-1]] = value


def remove(doc: Dict[str, Any], path: FieldPath) -> None:
    """
    Delete the leaf at path

    Missing intermediate segments are a no-op. A list met on the way fans the
    remaining path out to each of its dict elements.
    """
    if not path:
        return
    current = doc
    for i, field in enumerate(path[:-1]):
        nxt = current.get(field)
        if isinstance(nxt, dict):
            current = nxt
            continue
        if isinstance(nxt, list):
            for element in nxt:
                if isinstance(element, dict):
                    remove(element, path[i + 1:])
        return
    current.pop(path[-1], None)


def transform(doc: Dict[str, Any], path: FieldPath, fn: Callable[[Any], Any]) -> None:
    """
    Replace the leaf at path with fn(leaf)

    Traversal follows the same rules as remove(). When the leaf is a dict,
    fn is applied to each of its values instead of the dict as a whole.
    Other non string leaves (numbers, booleans, lists) are left untouched.
    """
    if not path:
        return
    current = doc
    for i, field in enumerate(path[:-1]):
        nxt = current.get(field)
        if isinstance(nxt, dict):
            current = nxt
            continue
        if isinstance(nxt, list):
            for element in nxt:
                if isinstance(element, dict):
                    transform(element, path[i + 1:], fn)
        return

    leaf = path[-1]
    if leaf not in current:
        return
    value = current[leaf]
    if isinstance(value, dict):
        for key in value:
            value[key] = fn(value[key])
    elif isinstance(value, str):
        current[leaf] = fn(value)


def restore(target: Dict[str, Any], source: Dict[str, Any], path: FieldPath) -> bool:
    """
    Copy the value reachable at path in source back into target

    Missing containers in target are recreated, lists element by element.
    Returns True if anything was restored.
    """
    if not path:
        return False
    field = path[0]
    if field not in source:
        return False
    if len(path) == 1:
        target[field] = copy.deepcopy(source[field])
        return True

    src = source[field]
    if isinstance(src, dict):
        dst = target.get(field)
        created = not isinstance(dst, dict)
        if created:
            dst = {}
        restored = restore(dst, src, path[1:])
        if restored and created:
            target[field] = dst
        return restored

    if isinstance(src, list):
        dst = target.get(field)
        created = not isinstance(dst, list) or len(dst) != len(src)
        if created:
            dst = [{} if isinstance(e, dict) else copy.deepcopy(e) for e in src]
        restored = False
        for src_element, dst_element in zip(src, dst):
            if isinstance(src_element, dict) and isinstance(dst_element, dict):
                restored = restore(dst_element, src_element, path[1:]) or restored
        if restored and created:
            target[field] = dst
        return restored

    return False


def walk_strings(obj: Any, fn: Callable[[str], Any]) -> int:
    """
    Apply fn to every string leaf of obj in place

    fn returns the replacement, or None to keep the string untouched.
    Returns the number of replaced leaves.
    """
    replaced = 0
    if isinstance(obj, dict):
        items: List[Tuple[Any, Any]] = list(obj.items())
    elif isinstance(obj, list):
        items = list(enumerate(obj))
    else:
        return 0

    for key, value in items:
        if isinstance(value, str):
            result = fn(value)
            if result is not None:
                obj[key] = result
                replaced += 1
        else:
            replaced += walk_strings(value, fn)
    return replaced
