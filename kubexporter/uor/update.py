"""
Owner Reference Update

After a restore into another cluster the owners of exported objects get
new UIDs. For every exported file with ownerReferences, each reference is
resolved against the live cluster by namespace and name, and the file is
rewritten when at least one UID changed. Owners that cannot be found are
reported as unresolved.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from kubexporter.common.documents import read_document, write_document
from kubexporter.common.logger import get_logger
from kubexporter.core.errors import NotFoundError
from kubexporter.export.client import ClusterAPI

logger = get_logger(__name__)

OwnerKey = Tuple[str, str, str, str]


@dataclass
class RepairResult:
    """Outcome for one file"""
    file: str
    namespace: str
    kind: str
    name: str
    updated: int = 0
    unresolved: int = 0

    @property
    def changed(self) -> bool:
        return self.updated > 0

    def row(self) -> List[str]:
        return [self.file, self.namespace, self.kind, self.name,
                str(self.updated), str(self.unresolved)]


class OwnerReferenceRepair:
    """Repair owner reference UIDs of the files below target"""

    def __init__(self, cluster: ClusterAPI, target: str, extension: str):
        self.cluster = cluster
        self.target = Path(target)
        self.extension = extension

    def files(self) -> List[str]:
        """All files below target with the output extension, sorted"""
        suffix = f".{self.extension}"
        found = []
        for root, _dirs, files in os.walk(self.target):
            for name in files:
                if name.endswith(suffix):
                    found.append(os.path.join(root, name))
        return sorted(found)

    def _relative(self, path: str) -> str:
        try:
            return str(Path(path).relative_to(self.target))
        except ValueError:
            return path

    def _owner(self, cache: Dict[OwnerKey, Optional[Dict[str, Any]]], namespace: str,
               ref: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        key = (namespace, ref.get('apiVersion') or '', ref.get('kind') or '', ref.get('name') or '')
        if key not in cache:
            try:
                cache[key] = self.cluster.get_object(key[1], key[2], namespace or None, key[3])
            except NotFoundError:
                cache[key] = None
        return cache[key]

    def repair_file(self, path: str) -> RepairResult:
        doc = read_document(path)
        metadata = doc.get('metadata') or {}
        namespace = metadata.get('namespace') or ''
        result = RepairResult(
            file=self._relative(path),
            namespace=namespace,
            kind=doc.get('kind') or '',
            name=metadata.get('name') or '',
        )

        cache: Dict[OwnerKey, Optional[Dict[str, Any]]] = {}
        for ref in metadata.get('ownerReferences') or []:
            owner = self._owner(cache, namespace, ref)
            if owner is None:
                result.unresolved += 1
                logger.warning(f"{result.file}: owner {ref.get('kind')}/{ref.get('name')} not found")
                continue
            uid = (owner.get('metadata') or {}).get('uid')
            if uid and uid != ref.get('uid'):
                logger.info(f"{result.file}:\t{ref.get('uid')} -> {uid}")
                ref['uid'] = uid
                result.updated += 1

        if result.changed:
            write_document(path, doc)
        return result

    def run(self) -> List[RepairResult]:
        """Repair every file, returns results for files with changed or unresolved owners"""
        results = []
        for path in self.files():
            result = self.repair_file(path)
            if result.updated or result.unresolved:
                results.append(result)
        return results
