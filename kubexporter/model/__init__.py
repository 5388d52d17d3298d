"""
Kubexporter Data Model

Per-kind tracking records, field maps and run statistics.
"""

from .fields import FieldValue, KindFields, parse_field_path
from .resources import GroupResource, parse_group_version, sort_resources
from .stats import Stats

__all__ = [
    'FieldValue',
    'GroupResource',
    'KindFields',
    'Stats',
    'parse_field_path',
    'parse_group_version',
    'sort_resources',
]
