"""
Group Resource

One discoverable kind plus the metrics collected while exporting it.
The identity fields are set at discovery; the metric fields are mutated
only by the worker that owns the kind and read after the pool has finished.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from kubexporter.common.utils import format_duration, format_size


def parse_group_version(api_version: str) -> Tuple[str, str]:
    """
    Split an apiVersion string into (group, version)

    'apps/v1' -> ('apps', 'v1'), 'v1' -> ('', 'v1')
    """
    parts = (api_version or '').split('/')
    if len(parts) == 1:
        return '', parts[0]
    if len(parts) == 2:
        return parts[0], parts[1]
    raise ValueError(f"unexpected GroupVersion string: {api_version}")


@dataclass
class GroupResource:
    """Group resource information"""
    api_group: str = ''
    api_version: str = ''
    kind: str = ''
    namespaced: bool = False
    name: str = ''
    verbs: List[str] = field(default_factory=list)

    # run metrics
    instances: int = 0
    exported_instances: int = 0
    pages: int = 0
    exported_size: int = 0
    query_duration: float = 0.0
    export_duration: float = 0.0
    error: Optional[str] = None

    @property
    def api_group_version(self) -> str:
        if self.api_group:
            return f"{self.api_group}/{self.api_version}"
        return self.api_version

    @property
    def group_kind(self) -> str:
        """Concatenated group and kind, the key used in all kind field maps"""
        if self.api_group:
            return f"{self.api_group}.{self.kind}"
        return self.kind

    @property
    def failed(self) -> bool:
        return self.error is not None

    def record_error(self, message: str) -> None:
        self.error = message

    def report(self, with_error: bool = False, with_pages: bool = False,
               with_size: bool = False) -> List[str]:
        """Generate one summary table row"""
        instances = str(self.instances)
        if self.exported_instances != self.instances:
            instances = f"{self.exported_instances}/{self.instances}"
        row = [
            self.api_group,
            self.api_version,
            self.kind,
            str(self.namespaced).lower(),
            instances,
        ]
        if with_size:
            row.append(format_size(self.exported_size))
        row.append(format_duration(self.query_duration))
        row.append(format_duration(self.export_duration))
        if with_pages:
            row.append(str(self.pages))
        if with_error:
            row.append(self.error or '')
        return row


def sort_resources(resources: List[GroupResource]) -> List[GroupResource]:
    """Sort by (group, kind) ascending for a deterministic processing order"""
    return sorted(resources, key=lambda r: (r.api_group, r.kind))
