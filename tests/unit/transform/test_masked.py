"""Tests for kubexporter/transform/masked.py"""

import hashlib

import pytest

from kubexporter.core.errors import ConfigurationError
from kubexporter.transform.masked import DEFAULT_MASK_REPLACEMENT, MaskConfig


class TestMaskConfig:
    """Test cases for masking"""

    def test_default_replacement(self):
        """Test the replacement defaults to asterisks"""
        masked = MaskConfig()
        masked.setup()
        assert masked.mask('secret') == DEFAULT_MASK_REPLACEMENT

    def test_custom_replacement(self):
        """Test a configured replacement"""
        masked = MaskConfig.from_config({'replacement': '<hidden>'})
        masked.setup()
        assert masked.mask(42) == '<hidden>'

    @pytest.mark.parametrize('name', ['md5', 'sha1', 'sha256', 'SHA256', 'sha224'])
    def test_checksums(self, name):
        """Test checksums are hex digests of the rendered value"""
        masked = MaskConfig.from_config({'checksum': name})
        masked.setup()
        expected = getattr(hashlib, name.lower())(b'secret').hexdigest()
        assert masked.mask('secret') == expected

    def test_sha256_is_not_truncated(self):
        """Test sha256 gives a full 256 bit digest and sha224 the shorter one"""
        digests = {}
        for name in ('sha256', 'sha224'):
            masked = MaskConfig.from_config({'checksum': name})
            masked.setup()
            digests[name] = masked.mask('secret')
        assert (len(digests['sha256']), len(digests['sha224'])) == (64, 56)

    def test_checksum_of_non_string(self):
        """Test non strings are rendered before hashing"""
        masked = MaskConfig.from_config({'checksum': 'sha256'})
        masked.setup()
        assert masked.mask(True) == hashlib.sha256(b'true').hexdigest()

    def test_invalid_checksum(self):
        """Test unknown algorithms are rejected"""
        masked = MaskConfig.from_config({'checksum': 'crc32'})
        with pytest.raises(ConfigurationError, match=r"supported are: \[md5/sha1/sha256/sha224\]"):
            masked.setup()
