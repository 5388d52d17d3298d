"""
Export Worker

A worker owns one execution lane. For every kind handed to it, it lists
the instances page by page, runs each surviving instance through the
transform engine and writes it out. Metrics are accumulated on the
GroupResource across pages; run counters go to the worker's own Stats.

A worker never raises for a failing kind: the failure is recorded on the
kind and the worker moves on.
"""

import threading
import time
from typing import Any, Dict, Iterator, List, Optional

import yaml

from kubexporter.common.logger import get_logger
from kubexporter.core.errors import (
    ClusterAPIError,
    ExportCancelled,
    MethodNotAllowedError,
    NotFoundError,
)
from kubexporter.export.client import ClusterAPI, ListPage
from kubexporter.export.progress import NopProgress, ProgressSink
from kubexporter.export.writer import NameIndex, Writer
from kubexporter.model import GroupResource, Stats
from kubexporter.transform.engine import TransformEngine

logger = get_logger(__name__)

NOT_FOUND = 'Not Found'
NOT_ALLOWED = 'Not Allowed'
CANCELLED = 'Cancelled'


def classify_error(e: Exception) -> str:
    """Message recorded on a kind whose list call failed"""
    if isinstance(e, NotFoundError):
        return NOT_FOUND
    if isinstance(e, MethodNotAllowedError):
        return NOT_ALLOWED
    if isinstance(e, ExportCancelled):
        return CANCELLED
    return f"Error:{e}"


class Worker:
    """Exports the kinds assigned to it, one at a time"""

    def __init__(self, worker_id: int, config, cluster: ClusterAPI,
                 engine: Optional[TransformEngine] = None,
                 writer: Optional[Writer] = None,
                 progress: Optional[ProgressSink] = None,
                 cancel_event: Optional[threading.Event] = None):
        self.id = worker_id
        self.config = config
        self.cluster = cluster
        self.engine = engine or TransformEngine(config)
        self.writer = writer or Writer(config)
        self.progress = progress or NopProgress()
        self.cancel_event = cancel_event
        self.stats = Stats()

    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _namespace(self, res: GroupResource) -> Optional[str]:
        if res.namespaced and self.config.namespace:
            return self.config.namespace
        return None

    def _fail(self, res: GroupResource, message: str) -> None:
        """Record an error, a kind counts as one error however often it fails"""
        if not res.failed:
            self.stats.errors += 1
            res.record_error(message)
        logger.debug(f"Worker {self.id}: {res.group_kind}: {message}")

    def pages(self, res: GroupResource, limit: int) -> Iterator[ListPage]:
        """
        Yield pages until the cluster returns no continuation token

        The cancel event is checked before every list call. Query time and
        page counts are added to res.
        """
        namespace = self._namespace(res)
        token = ''
        while True:
            if self.cancelled():
                raise ExportCancelled(CANCELLED)
            start = time.monotonic()
            try:
                page = self.cluster.list_page(res, namespace=namespace,
                                              continue_token=token, limit=limit)
            finally:
                res.query_duration += time.monotonic() - start
            res.pages += 1
            self.stats.pages += 1
            res.instances += len(page.items)
            self.progress.page_fetched(self.id, res, len(page.items))
            yield page

            if not page.continue_token:
                return
            if page.continue_token == token:
                raise ClusterAPIError(f"continue token did not advance for {res.group_kind}")
            token = page.continue_token

    def _survivors(self, res: GroupResource, items: List[Dict[str, Any]]) -> Iterator[Dict[str, Any]]:
        for doc in items:
            if self.engine.is_instance_excluded(res, doc):
                continue
            yield self.engine.apply(res, doc)

    def export_single_resources(self, res: GroupResource) -> None:
        names = NameIndex()
        for page in self.pages(res, self.config.query_page_size):
            start = time.monotonic()
            written = 0
            for doc in self._survivors(res, page.items):
                metadata = doc.get('metadata') or {}
                namespace = metadata.get('namespace') or ''
                index = names.next(namespace, metadata.get('name') or '')
                try:
                    size = self.writer.write_instance(res, doc, index)
                except (OSError, ValueError, yaml.YAMLError) as e:
                    logger.warning(f"Failed to write {res.group_kind} {metadata.get('name')}: {e}")
                    self._fail(res, str(e))
                    continue
                written += 1
                res.exported_instances += 1
                res.exported_size += size
                self.stats.resources += 1
                self.stats.add_namespace(namespace)
            res.export_duration += time.monotonic() - start
            self.progress.instances_written(self.id, res, written)

    def export_lists(self, res: GroupResource) -> None:
        # no page limit, a list file must hold every instance of its namespace
        per_namespace: Dict[str, List[Dict[str, Any]]] = {}
        api_version, kind = res.api_group_version, f"{res.kind}List"
        for page in self.pages(res, 0):
            start = time.monotonic()
            api_version = page.api_version or api_version
            kind = page.kind or kind
            for doc in self._survivors(res, page.items):
                namespace = (doc.get('metadata') or {}).get('namespace') or ''
                per_namespace.setdefault(namespace, []).append(doc)
            res.export_duration += time.monotonic() - start

        start = time.monotonic()
        for namespace, items in per_namespace.items():
            try:
                size = self.writer.write_list(res, namespace, api_version, kind, items)
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Failed to write {res.group_kind} list of {namespace or 'cluster'}: {e}")
                self._fail(res, str(e))
                continue
            res.exported_instances += len(items)
            res.exported_size += size
            self.stats.resources += len(items)
            self.stats.add_namespace(namespace)
            self.progress.instances_written(self.id, res, len(items))
        res.export_duration += time.monotonic() - start

    def run(self, res: GroupResource) -> GroupResource:
        """Export one kind"""
        self.stats.kinds += 1
        self.progress.kind_started(self.id, res)
        try:
            if self.config.as_lists:
                self.export_lists(res)
            else:
                self.export_single_resources(res)
        except (ClusterAPIError, ExportCancelled) as e:
            self._fail(res, classify_error(e))
        self.progress.kind_finished(self.id, res)
        return res
