"""
Output Writer

Writes transformed documents below the export target, either one file
per instance or one list file per namespace.
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple

from kubexporter.common.documents import write_document
from kubexporter.model import GroupResource


class NameIndex:
    """
    Assigns a suffix index to instances whose names only differ in case

    The first instance of a (namespace, lower cased name) gets 0, the next 1,
    and so on in encounter order. Scoped to one kind.
    """

    def __init__(self):
        self._seen: Dict[Tuple[str, str], int] = {}

    def next(self, namespace: str, name: str) -> int:
        key = (namespace or '', (name or '').lower())
        index = self._seen.get(key, 0)
        self._seen[key] = index + 1
        return index


class Writer:
    """Write documents to the configured target"""

    def __init__(self, config):
        self.config = config
        self.target = Path(config.target)

    def instance_path(self, res: GroupResource, doc: Dict[str, Any], index: int = 0) -> Path:
        metadata = doc.get('metadata') or {}
        relative = self.config.file_name(res, metadata.get('namespace') or '',
                                         metadata.get('name') or '', index)
        return self.target / relative

    def list_path(self, res: GroupResource, namespace: str) -> Path:
        return self.target / self.config.list_file_name(res, namespace)

    def write_instance(self, res: GroupResource, doc: Dict[str, Any], index: int = 0) -> int:
        """Write one instance, returns the bytes written"""
        return write_document(self.instance_path(res, doc, index), doc, self.config.output_format)

    def write_list(self, res: GroupResource, namespace: str, api_version: str,
                   kind: str, items: List[Dict[str, Any]]) -> int:
        """Write the list document of one namespace, without list metadata"""
        doc = {
            'apiVersion': api_version,
            'kind': kind,
            'items': items,
        }
        return write_document(self.list_path(res, namespace), doc, self.config.output_format)
