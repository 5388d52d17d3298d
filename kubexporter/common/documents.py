"""
Document File I/O

Reads and writes exported resource documents as YAML or JSON. Reading
accepts either format regardless of the file extension; writing picks
the format from the extension unless one is given explicitly.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from kubexporter.core.errors import DocumentError
from kubexporter.document import normalize

FORMATS = ('yaml', 'json')


def format_for(path: Union[str, Path], default: str = 'yaml') -> str:
    """Output format implied by a file extension"""
    suffix = Path(path).suffix.lower().lstrip('.')
    if suffix == 'yml':
        return 'yaml'
    if suffix in FORMATS:
        return suffix
    return default


def dump_document(doc: Dict[str, Any], output_format: str) -> str:
    """Serialize a document to text"""
    if output_format == 'json':
        return json.dumps(doc, indent=2, ensure_ascii=False) + '\n'
    if output_format == 'yaml':
        return yaml.safe_dump(doc, default_flow_style=False, allow_unicode=True, sort_keys=False)
    raise ValueError(f"unsupported output format [{output_format}]")


def load_document(text: str) -> Dict[str, Any]:
    """Parse YAML or JSON text (JSON is a subset of YAML) into a normalized document"""
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("document root must be a mapping")
    return normalize(data)


def read_document(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a document from disk, raising DocumentError naming the file on failure"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return load_document(f.read())
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise DocumentError(f"failed to read {path}: {e}") from e


def write_document(path: Union[str, Path], doc: Dict[str, Any],
                   output_format: Optional[str] = None) -> int:
    """
    Write a document to disk, creating parent directories

    Returns:
        Number of bytes written
    """
    path = Path(path)
    data = dump_document(doc, output_format or format_for(path)).encode('utf-8')
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'wb') as f:
        f.write(data)
    return len(data)
