"""
Dispatcher

Fixed size thread pool consuming kinds from a job queue. Each kind is put
on the queue exactly once, so no kind is ever handled by two workers. The
caller blocks on the queue until every kind has been taken and finished,
then the threads are stopped and the worker Stats are merged.
"""

import queue
import threading
from typing import List

from kubexporter.common.logger import get_logger
from kubexporter.core.errors import KubexporterError
from kubexporter.export.worker import Worker
from kubexporter.model import GroupResource, Stats

logger = get_logger(__name__)

_STOP = object()


class Dispatcher:
    """Runs a batch of kinds on a fixed set of workers"""

    def __init__(self, workers: List[Worker]):
        if not workers:
            raise ValueError("at least one worker is required")
        self.workers = workers
        self.finished: List[GroupResource] = []

    def _loop(self, worker: Worker, jobs: queue.Queue, out: queue.Queue) -> None:
        while True:
            res = jobs.get()
            try:
                if res is _STOP:
                    return
                try:
                    worker.run(res)
                except Exception as e:
                    # the kind must still be accounted for
                    logger.error(f"Worker {worker.id} failed on {res.group_kind}: {e}")
                    worker.stats.errors += 1
                    res.record_error(f"Error:{e}")
                out.put(res)
            finally:
                jobs.task_done()

    def run(self, resources: List[GroupResource]) -> Stats:
        """
        Export all kinds and wait for completion

        Returns:
            Stats merged from all workers
        """
        self.finished = []
        jobs: queue.Queue = queue.Queue(maxsize=len(resources) + len(self.workers))
        out: queue.Queue = queue.Queue()

        threads = []
        for worker in self.workers:
            t = threading.Thread(
                target=self._loop,
                args=(worker, jobs, out),
                name=f"kubexporter-worker-{worker.id}",
                daemon=True,
            )
            t.start()
            threads.append(t)

        for res in resources:
            jobs.put(res)
        jobs.join()

        for _ in threads:
            jobs.put(_STOP)
        for t in threads:
            t.join()

        while not out.empty():
            self.finished.append(out.get_nowait())
        if len(self.finished) != len(resources):
            raise KubexporterError(
                f"{len(self.finished)} of {len(resources)} kinds reported back from the workers"
            )

        return Stats.merged(w.stats for w in self.workers)
