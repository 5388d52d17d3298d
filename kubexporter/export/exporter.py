"""
Exporter

Drives a complete export run:

1. optionally purge the target directory
2. discover kinds and filter them
3. sort kinds by (group, kind)
4. export them on the worker pool
5. print the summary
6. optionally archive, prune and upload
"""

import shutil
import threading
import time
from pathlib import Path
from typing import List, Optional

from kubexporter.common.logger import check, get_logger
from kubexporter.common.utils import format_duration
from kubexporter.core.errors import KubexporterError
from kubexporter.export.archive import create_archive, prune_archives
from kubexporter.export.client import ClusterAPI
from kubexporter.export.gcs import GCSUploader
from kubexporter.export.pool import Dispatcher
from kubexporter.export.progress import new_progress
from kubexporter.export.s3 import S3Uploader
from kubexporter.export.worker import Worker
from kubexporter.export.writer import Writer
from kubexporter.model import GroupResource, Stats, sort_resources
from kubexporter.render import stats_line, summary_table
from kubexporter.transform.engine import TransformEngine

logger = get_logger(__name__)


class Exporter:
    """Export all resources of a cluster"""

    def __init__(self, config, cluster: ClusterAPI):
        self.config = config.validate()
        self.cluster = cluster
        self.resources: List[GroupResource] = []
        self.stats = Stats()
        self.archive: Optional[str] = None
        self.deleted_archives: List[str] = []

    def purge_target(self) -> None:
        target = Path(self.config.target)
        if not target.exists():
            return
        logger.info(f"Deleting target {str(target)!r}")
        try:
            shutil.rmtree(target)
        except OSError as e:
            raise KubexporterError(f"Failed to delete target {target}: {e}") from e
        check(logger, "done 🚮")

    def write_intro(self) -> None:
        config = self.config
        logger.info("Starting export ...")
        check(logger, f"cluster {self.cluster.host!r}")
        if config.namespace:
            check(logger, f"namespace {config.namespace!r} 🏠")
        else:
            check(logger, "all namespaces 🏘️")
        check(logger, f"target {config.target!r} 📁")
        check(logger, f"format {config.output_format!r} 📜")
        if config.worker > 1:
            check(logger, f"worker {config.worker} 👷")
        if config.summary:
            check(logger, "summary 📊")
        if config.as_lists:
            check(logger, "as lists 📦")
        if config.archive:
            check(logger, "compress as archive 🗜️")
        if config.masked.kind_fields:
            logger.debug(f"  masked fields: {config.masked.kind_fields}")
        if config.encrypted.kind_fields:
            logger.debug(f"  encrypted fields: {config.encrypted.kind_fields}")

    def list_resources(self) -> List[GroupResource]:
        """Discovered kinds that can be listed and pass the kind filters, sorted"""
        resources = []
        for res in self.cluster.discover_kinds():
            if 'list' not in res.verbs:
                continue
            if not res.namespaced and self.config.namespace:
                continue
            if self.config.is_excluded(res):
                continue
            resources.append(res)
        return sort_resources(resources)

    def export(self, cancel_event: Optional[threading.Event] = None) -> Stats:
        """
        Run the export

        Per kind failures end up in the summary. Only configuration, archive
        and upload failures raise.
        """
        start = time.monotonic()
        config = self.config

        if config.clear_target:
            self.purge_target()

        self.write_intro()
        self.resources = self.list_resources()
        logger.debug(f"Exporting {len(self.resources)} kinds")

        progress = new_progress(config.progress, len(self.resources), config.worker)
        engine = TransformEngine(config)
        writer = Writer(config)
        workers = [
            Worker(i + 1, config, self.cluster, engine=engine, writer=writer,
                   progress=progress, cancel_event=cancel_event)
            for i in range(config.worker)
        ]
        try:
            self.stats = Dispatcher(workers).run(self.resources)
        finally:
            progress.close()

        if config.summary:
            logger.info("")
            logger.info(summary_table(
                self.resources,
                worker=config.worker,
                with_size=config.print_size,
                with_pages=config.query_page_size > 0,
            ))
            logger.info("")
            logger.info(stats_line(self.stats))

        if self.stats.has_errors():
            logger.warning(f"{self.stats.errors} kind(s) could not be exported")

        if config.archive:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Export was cancelled, skipping archive")
            else:
                self.archive_and_upload()

        logger.info(f"\nTotal Duration: {format_duration(time.monotonic() - start)} ⌛")
        return self.stats

    def archive_and_upload(self) -> None:
        config = self.config
        older_than = config.max_archive_age()

        logger.info("\nCreating archive ...")
        self.archive = create_archive(
            config.target, config.archive_dir, config.extension, config.namespace,
        )
        check(logger, f"archive {self.archive!r} 🗜️")

        if config.archive_retention_days > 0:
            self.deleted_archives += prune_archives(config.target, config.archive_dir, older_than)

        prefix = Path(config.target).name
        uploaders = []
        if config.s3 is not None and config.s3.bucket:
            uploaders.append(('s3', S3Uploader(config.s3)))
        if config.gcs is not None and config.gcs.bucket:
            uploaders.append(('gcs', GCSUploader(config.gcs)))

        for scheme, uploader in uploaders:
            key = uploader.upload(self.archive)
            check(logger, f"uploaded to {scheme}:{key} ☁️")
            if config.archive_retention_days > 0:
                self.deleted_archives += uploader.prune(prefix, older_than)

        if self.deleted_archives:
            logger.info("Deleted archives:")
            for name in self.deleted_archives:
                check(logger, name)
