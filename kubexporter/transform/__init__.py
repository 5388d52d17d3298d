"""
Field Transform Engine

Exclusion, masking, encryption and slice sorting of resource documents.
"""

from .encrypted import PREFIX, EncryptionConfig, decrypt_all, decrypt_files, encrypt_files
from .engine import TransformEngine
from .masked import DEFAULT_MASK_REPLACEMENT, MaskConfig

__all__ = [
    'DEFAULT_MASK_REPLACEMENT',
    'PREFIX',
    'EncryptionConfig',
    'MaskConfig',
    'TransformEngine',
    'decrypt_all',
    'decrypt_files',
    'encrypt_files',
]
