"""
Progress Sinks

Workers report what they do through a ProgressSink and never render
anything themselves. Sinks are called from several worker threads.
"""

import threading
from typing import Optional

from tqdm import tqdm

from kubexporter.common.logger import check, get_logger
from kubexporter.model import GroupResource

logger = get_logger(__name__)


class ProgressSink:
    """Receives structured progress events, the base class ignores all of them"""

    def kind_started(self, worker_id: int, res: GroupResource) -> None:
        pass

    def page_fetched(self, worker_id: int, res: GroupResource, items: int) -> None:
        pass

    def instances_written(self, worker_id: int, res: GroupResource, count: int) -> None:
        pass

    def kind_finished(self, worker_id: int, res: GroupResource) -> None:
        pass

    def close(self) -> None:
        pass


class NopProgress(ProgressSink):
    """No progress output"""


class SimpleProgress(ProgressSink):
    """One check line per finished kind"""

    def kind_finished(self, worker_id: int, res: GroupResource) -> None:
        if res.failed:
            logger.warning(f"  {res.group_kind}: {res.error}")
        else:
            check(logger, res.group_kind)


class BarProgress(ProgressSink):
    """tqdm bar over all kinds plus a postfix with the current kind of each worker"""

    def __init__(self, total: int, worker: int = 1):
        self._lock = threading.Lock()
        self._current = {}
        self._bar: Optional[tqdm] = tqdm(
            total=total,
            desc="Resources",
            unit="kind",
            leave=True,
        )
        self._worker = worker

    def _refresh(self) -> None:
        if self._worker > 1:
            current = ' '.join(f"{i}:{kind}" for i, kind in sorted(self._current.items()))
        else:
            current = ' '.join(self._current.values())
        self._bar.set_postfix_str(current, refresh=True)

    def kind_started(self, worker_id: int, res: GroupResource) -> None:
        with self._lock:
            self._current[worker_id] = f"🔍 {res.group_kind}"
            self._refresh()

    def page_fetched(self, worker_id: int, res: GroupResource, items: int) -> None:
        with self._lock:
            self._current[worker_id] = f"👷 {res.group_kind} {res.instances}"
            self._refresh()

    def kind_finished(self, worker_id: int, res: GroupResource) -> None:
        with self._lock:
            self._current.pop(worker_id, None)
            self._bar.update(1)
            self._refresh()

    def close(self) -> None:
        with self._lock:
            if self._bar is not None:
                self._bar.set_postfix_str('', refresh=False)
                self._bar.close()
                self._bar = None


def new_progress(mode: str, total: int, worker: int = 1) -> ProgressSink:
    """Create the sink for a progress mode ('bar', 'simple' or 'none')"""
    if mode == 'simple':
        return SimpleProgress()
    if mode == 'none':
        return NopProgress()
    return BarProgress(total, worker)
