"""Test utilities and helpers for the kubexporter test suite"""

import copy
from typing import Any, Dict, List, Optional

from kubexporter.core.errors import NotFoundError
from kubexporter.export.client import ClusterAPI, ListPage
from kubexporter.model import GroupResource

AES_KEY = '0123456789abcdef0123456789abcdef'


class FakeClusterAPI(ClusterAPI):
    """In-memory cluster serving documents page by page"""

    def __init__(self, resources: Optional[List[GroupResource]] = None,
                 objects: Optional[Dict[str, List[Dict[str, Any]]]] = None,
                 failures: Optional[Dict[str, Exception]] = None):
        self.resources = resources or []
        self.objects = objects or {}
        self.failures = failures or {}
        self.list_calls: List[Dict[str, Any]] = []
        self.get_calls: List[tuple] = []

    @property
    def host(self) -> str:
        return 'https://fake-cluster:6443'

    def discover_kinds(self) -> List[GroupResource]:
        return [copy.deepcopy(r) for r in self.resources]

    def list_page(self, resource, namespace=None, continue_token='', limit=0):
        self.list_calls.append({
            'kind': resource.group_kind,
            'namespace': namespace,
            'continue': continue_token,
            'limit': limit,
        })
        if resource.group_kind in self.failures:
            raise self.failures[resource.group_kind]

        items = [copy.deepcopy(o) for o in self.objects.get(resource.group_kind, [])]
        if namespace:
            items = [o for o in items if o.get('metadata', {}).get('namespace') == namespace]

        start = int(continue_token) if continue_token else 0
        end = start + limit if limit > 0 else len(items)
        token = str(end) if end < len(items) else ''
        return ListPage(
            items=items[start:end],
            continue_token=token,
            api_version=resource.api_group_version,
            kind=f"{resource.kind}List",
        )

    def get_object(self, api_version, kind, namespace, name):
        self.get_calls.append((api_version, kind, namespace, name))
        for objects in self.objects.values():
            for o in objects:
                metadata = o.get('metadata') or {}
                if (o.get('apiVersion') == api_version and o.get('kind') == kind
                        and metadata.get('name') == name
                        and (metadata.get('namespace') or None) == (namespace or None)):
                    return copy.deepcopy(o)
        raise NotFoundError(f"{kind} {name} not found")


def make_resource(kind: str, group: str = '', version: str = 'v1',
                  namespaced: bool = True, verbs: Optional[List[str]] = None) -> GroupResource:
    return GroupResource(
        api_group=group,
        api_version=version,
        kind=kind,
        namespaced=namespaced,
        name=kind.lower() + 's',
        verbs=verbs if verbs is not None else ['get', 'list', 'watch'],
    )


def make_doc(kind: str, name: str, namespace: str = 'default', api_version: str = 'v1',
             **extra: Any) -> Dict[str, Any]:
    metadata = {
        'name': name,
        'uid': f"uid-{name}",
        'resourceVersion': '42',
        'creationTimestamp': '2024-01-01T00:00:00Z',
    }
    if namespace:
        metadata['namespace'] = namespace
    doc = {'apiVersion': api_version, 'kind': kind, 'metadata': metadata}
    doc.update(extra)
    return doc


