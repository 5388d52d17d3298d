"""
Archive and Retention

Packs the exported files into a timestamped tar.gz and prunes local
archives that fell out of the retention window.
"""

import os
import re
import tarfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from kubexporter.common.logger import get_logger
from kubexporter.common.utils import ensure_directory
from kubexporter.core.errors import ArchiveError

logger = get_logger(__name__)

ARCHIVE_TIMESTAMP_FORMAT = '%Y-%m-%d-%H%M%S'


def archive_name(target: str, namespace: str = '', now: Optional[datetime] = None) -> str:
    """<targetBase>[-<namespace>]-<YYYY-MM-DD-HHMMSS>.tar.gz"""
    base = Path(target).name
    stamp = (now or datetime.now()).strftime(ARCHIVE_TIMESTAMP_FORMAT)
    if namespace:
        return f"{base}-{namespace}-{stamp}.tar.gz"
    return f"{base}-{stamp}.tar.gz"


def archive_pattern(target: str) -> re.Pattern:
    """Matches every archive created for target, with or without namespace"""
    return re.compile(
        rf'^{re.escape(Path(target).name)}-?.*-\d{{4}}-\d{{2}}-\d{{2}}-\d{{6}}\.tar\.gz$'
    )


def _arcname(path: Path, work_dir: Path) -> str:
    try:
        return path.relative_to(work_dir).as_posix()
    except ValueError:
        return path.as_posix().lstrip('/')


def create_archive(target: str, archive_dir: str, extension: str, namespace: str = '',
                   work_dir: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """
    Create the archive of all files with the output extension below target

    Member names are relative to the working directory.

    Returns:
        Path of the created archive
    """
    work = Path(work_dir or os.getcwd()).resolve()
    try:
        directory = ensure_directory(archive_dir)
        name = directory / archive_name(target, namespace, now)
        suffix = f".{extension}"
        with tarfile.open(name, 'w:gz') as tar:
            for root, _dirs, files in os.walk(target):
                for file_name in sorted(files):
                    path = Path(root) / file_name
                    if path.suffix != suffix:
                        continue
                    tar.add(path, arcname=_arcname(path.resolve(), work), recursive=False)
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(f"Failed to create archive: {e}") from e

    logger.debug(f"Created archive {name}")
    return str(name)


def prune_archives(target: str, archive_dir: str, older_than: datetime) -> List[str]:
    """
    Delete local archives of target modified before older_than

    Returns:
        Paths of the deleted archives
    """
    pattern = archive_pattern(target)
    deleted = []
    try:
        for entry in sorted(Path(archive_dir).iterdir()):
            if not entry.is_file() or not pattern.match(entry.name):
                continue
            if datetime.fromtimestamp(entry.stat().st_mtime) < older_than:
                entry.unlink()
                deleted.append(str(entry))
    except OSError as e:
        raise ArchiveError(f"Failed to prune archives: {e}") from e
    return deleted
