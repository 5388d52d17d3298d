"""
Masking

Replaces configured fields with a fixed string or with a hex checksum of
the rendered value.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from kubexporter.core.errors import ConfigurationError
from kubexporter.document import render_value
from kubexporter.model import KindFields

DEFAULT_MASK_REPLACEMENT = '*****'

CHECKSUMS: Dict[str, Callable[..., Any]] = {
    'md5': hashlib.md5,
    'sha1': hashlib.sha1,
    # a true SHA-256; sha224 reproduces exports whose "sha256" digests were SHA-224
    'sha256': hashlib.sha256,
    'sha224': hashlib.sha224,
}


@dataclass
class MaskConfig:
    """Masking params"""
    replacement: str = ''
    checksum: str = ''
    kind_fields: KindFields = field(default_factory=KindFields)
    _digest: Optional[Callable[..., Any]] = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> 'MaskConfig':
        data = data or {}
        return cls(
            replacement=str(data.get('replacement') or ''),
            checksum=str(data.get('checksum') or ''),
            kind_fields=KindFields.from_config(data.get('kindFields')),
        )

    def setup(self) -> None:
        """Select the digest function; fails on an unknown checksum name"""
        if self.checksum:
            digest = CHECKSUMS.get(self.checksum.lower())
            if digest is None:
                raise ConfigurationError(
                    f"invalid checksum {self.checksum!r} supported are: [{'/'.join(CHECKSUMS)}]"
                )
            self._digest = digest
        if not self.replacement:
            self.replacement = DEFAULT_MASK_REPLACEMENT

    def mask(self, value: Any) -> str:
        if self._digest is not None:
            return self._digest(render_value(value).encode('utf-8')).hexdigest()
        return self.replacement
