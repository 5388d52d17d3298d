"""
Tabular Reports

Summary, batch and repair reports rendered with tabulate.
"""

from typing import Iterable, List, Sequence

from tabulate import tabulate

from kubexporter.common.utils import format_duration, format_size
from kubexporter.model import GroupResource, Stats

TABLE_FORMAT = 'simple'


def table(rows: Sequence[Sequence[str]], headers: Sequence[str]) -> str:
    return tabulate(rows, headers=headers, tablefmt=TABLE_FORMAT,
                    stralign='left', disable_numparse=True)


def summary_table(resources: List[GroupResource], worker: int = 1,
                  with_size: bool = False, with_pages: bool = False) -> str:
    """
    Per kind export summary with a total row

    The Error column is only shown when at least one kind failed. With more
    than one worker the durations of the total row are cumulated across
    workers and labelled accordingly.
    """
    with_error = any(r.failed for r in resources)

    headers = ['Group', 'Version', 'Kind', 'Namespaced', 'Instances']
    if with_size:
        headers.append('Size')
    headers += ['Query Duration', 'Export Duration']
    if with_pages:
        headers.append('Pages')
    if with_error:
        headers.append('Error')

    rows = [r.report(with_error=with_error, with_pages=with_pages, with_size=with_size)
            for r in resources]

    instances = sum(r.instances for r in resources)
    exported = sum(r.exported_instances for r in resources)
    total = ['CUMULATED TOTAL' if worker > 1 else 'TOTAL', '', '', '',
             str(instances) if exported == instances else f"{exported}/{instances}"]
    if with_size:
        total.append(format_size(sum(r.exported_size for r in resources)))
    total.append(format_duration(sum(r.query_duration for r in resources)))
    total.append(format_duration(sum(r.export_duration for r in resources)))
    if with_pages:
        total.append(str(sum(r.pages for r in resources)))
    if with_error:
        total.append('')
    rows.append(total)

    return table(rows, headers)


def stats_line(stats: Stats) -> str:
    return (f"Kinds: {stats.kinds}  Resources: {stats.resources}  "
            f"Namespaces: {stats.namespaces()}  Errors: {stats.errors}")


def file_results_table(results: Iterable, count_header: str) -> str:
    """Per file report of a batch encrypt or decrypt run"""
    return table([r.row() for r in results],
                 ['File', 'Namespace', 'Kind', 'Name', count_header])


def repair_table(results: Iterable) -> str:
    """Per file report of an owner reference repair run"""
    return table([r.row() for r in results],
                 ['File', 'Namespace', 'Kind', 'Name', 'Updated', 'Unresolved'])
