"""
Field Encryption

AES-GCM sealing of individual document fields. Every sealed field is a
self describing envelope string:

    KUBEXPORTER_AES@ + base64(nonce || ciphertext || tag)

so encrypted values can be found and opened without knowing which fields
were targeted. Each field is sealed with its own random 12 byte nonce.
"""

import base64
import binascii
import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from kubexporter.common.documents import read_document, write_document
from kubexporter.common.logger import get_logger
from kubexporter.core.env import ENV_AES_KEY, env
from kubexporter.core.errors import ConfigurationError, EncryptionError
from kubexporter.document import render_value, transform, walk_strings
from kubexporter.model import KindFields, parse_group_version

logger = get_logger(__name__)

PREFIX = 'KUBEXPORTER_AES@'
NONCE_SIZE = 12
KEY_SIZES = (16, 24, 32)


def new_cipher(aes_key: str) -> AESGCM:
    """Create the AEAD cipher, the key must be 16, 24 or 32 bytes long"""
    key = aes_key.encode('utf-8')
    if len(key) not in KEY_SIZES:
        raise ConfigurationError(
            f"invalid key size {len(key)}: aesKey must be 16, 24 or 32 chars long"
        )
    return AESGCM(key)


def seal(cipher: AESGCM, value: Any) -> str:
    nonce = os.urandom(NONCE_SIZE)
    data = render_value(value).encode('utf-8')
    return PREFIX + base64.b64encode(nonce + cipher.encrypt(nonce, data, None)).decode('ascii')


def seal_field(cipher: AESGCM, value: Any) -> Any:
    """Seal one value; empty values and existing envelopes are returned unchanged"""
    if value is None or value == '':
        return value
    if isinstance(value, str) and value.startswith(PREFIX):
        return value
    return seal(cipher, value)


def open_envelope(cipher: AESGCM, envelope: str) -> str:
    """
    Recover the plaintext of one envelope

    Raises:
        EncryptionError: Malformed base64, truncated payload or failed authentication
    """
    try:
        payload = base64.b64decode(envelope[len(PREFIX):], validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionError(f"invalid envelope encoding: {e}") from e

    if len(payload) < NONCE_SIZE:
        raise EncryptionError("invalid text size")

    nonce, ciphertext = payload[:NONCE_SIZE], payload[NONCE_SIZE:]
    try:
        plaintext = cipher.decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise EncryptionError("message authentication failed: wrong key or corrupted value") from e
    return plaintext.decode('utf-8')


def decrypt_all(doc: Dict[str, Any], cipher: AESGCM) -> Tuple[Dict[str, Any], int]:
    """
    Open every envelope found in any string leaf of doc

    Works on a copy, so a failure leaves doc untouched.

    Returns:
        Tuple of (decrypted document, number of decrypted fields)
    """
    result = copy.deepcopy(doc)

    def _open(value: str) -> Optional[str]:
        if value.startswith(PREFIX):
            return open_envelope(cipher, value)
        return None

    count = walk_strings(result, _open)
    return result, count


@dataclass
class EncryptionConfig:
    """Encryption params"""
    aes_key: str = ''
    kind_fields: KindFields = field(default_factory=KindFields)
    _cipher: Optional[AESGCM] = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> 'EncryptionConfig':
        data = data or {}
        return cls(
            aes_key=str(data.get('aesKey') or ''),
            kind_fields=KindFields.from_config(data.get('kindFields')),
        )

    @property
    def ready(self) -> bool:
        return self._cipher is not None

    def setup(self) -> None:
        """
        Create the cipher

        The KUBEXPORTER_AES_KEY environment variable wins over the configured
        key. Fails when fields are targeted without a usable key.
        """
        if env.aes_key:
            self.aes_key = env.aes_key
        if self.aes_key:
            self._cipher = new_cipher(self.aes_key)
        elif self.kind_fields:
            raise ConfigurationError(
                "encrypted mode needs a valid aesKey. please remove the 'encrypted' config "
                f"or provide the 'aesKey' in the config or via env variable {ENV_AES_KEY!r}"
            )

    def encrypt_field(self, value: Any) -> Any:
        if self._cipher is None:
            raise EncryptionError("encryption is not set up")
        return seal_field(self._cipher, value)


@dataclass
class FileResult:
    """Per file outcome of a batch encrypt or decrypt run"""
    file: str
    namespace: str
    kind: str
    name: str
    count: int

    def row(self) -> List[str]:
        return [self.file, self.namespace, self.kind, self.name, str(self.count)]


def _describe(path: str, doc: Dict[str, Any], count: int) -> FileResult:
    metadata = doc.get('metadata') or {}
    return FileResult(
        file=path,
        namespace=metadata.get('namespace') or '',
        kind=doc.get('kind') or '',
        name=metadata.get('name') or '',
        count=count,
    )


def document_group_kind(doc: Dict[str, Any]) -> str:
    """group.Kind of a document, just Kind for the core group"""
    try:
        group, _ = parse_group_version(doc.get('apiVersion') or '')
    except ValueError:
        group = ''
    kind = doc.get('kind') or ''
    return f"{group}.{kind}" if group else kind


def encrypt_files(aes_key: str, kind_fields: KindFields,
                  files: Iterable[str]) -> List[FileResult]:
    """
    Encrypt the configured fields of already exported files in place

    Files without any newly sealed field are not rewritten.
    """
    cipher = new_cipher(aes_key)

    results = []
    for path in files:
        doc = read_document(path)
        count = 0

        def _encrypt(value: Any) -> Any:
            nonlocal count
            sealed = seal_field(cipher, value)
            if sealed is not value:
                count += 1
            return sealed

        for field_path in kind_fields.fields_for(document_group_kind(doc)):
            transform(doc, field_path, _encrypt)

        if count:
            write_document(Path(path), doc)
        logger.debug(f"Encrypted {count} field(s) in {path}")
        results.append(_describe(str(path), doc, count))
    return results


def decrypt_files(aes_key: str, files: Iterable[str]) -> List[FileResult]:
    """
    Decrypt every envelope of already exported files in place

    The first file that fails to decrypt aborts the batch.
    """
    cipher = new_cipher(aes_key)

    results = []
    for path in files:
        doc, count = decrypt_all(read_document(path), cipher)
        if count:
            write_document(Path(path), doc)
        logger.debug(f"Decrypted {count} field(s) in {path}")
        results.append(_describe(str(path), doc, count))
    return results
