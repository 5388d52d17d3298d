"""Tests for kubexporter/common/documents.py"""

import json

import pytest
import yaml

from kubexporter.common.documents import (
    dump_document,
    format_for,
    load_document,
    read_document,
    write_document,
)
from kubexporter.core.errors import DocumentError


class TestDocuments:
    """Test cases for document file I/O"""

    def test_format_for(self):
        """Test the output format follows the extension"""
        assert format_for('a/b.yaml') == 'yaml'
        assert format_for('a/b.YML') == 'yaml'
        assert format_for('a/b.json') == 'json'
        assert format_for('a/b.txt') == 'yaml'
        assert format_for('a/b.txt', default='json') == 'json'

    def test_dump_json_is_indented(self):
        """Test JSON output is indented and newline terminated"""
        text = dump_document({'kind': 'Secret', 'data': {'a': 'b'}}, 'json')
        assert text.endswith('\n')
        assert '\n  "kind": "Secret"' in text
        assert json.loads(text) == {'kind': 'Secret', 'data': {'a': 'b'}}

    def test_dump_yaml_keeps_key_order(self):
        """Test YAML output keeps insertion order"""
        text = dump_document({'kind': 'Secret', 'apiVersion': 'v1'}, 'yaml')
        assert text.index('kind') < text.index('apiVersion')

    def test_dump_unsupported_format(self):
        """Test unknown formats are rejected"""
        with pytest.raises(ValueError):
            dump_document({}, 'xml')

    def test_load_accepts_json_and_yaml(self):
        """Test either format is read"""
        assert load_document('{"kind": "Secret"}') == {'kind': 'Secret'}
        assert load_document('kind: Secret\n') == {'kind': 'Secret'}
        assert load_document('') == {}

    def test_load_normalizes_timestamps(self):
        """Test YAML timestamps come back as strings"""
        doc = load_document('metadata:\n  creationTimestamp: 2024-01-02T03:04:05Z\n')
        assert doc['metadata']['creationTimestamp'] == '2024-01-02T03:04:05Z'

    def test_load_rejects_non_mapping(self):
        """Test the root must be a mapping"""
        with pytest.raises(ValueError):
            load_document('- a\n- b\n')

    def test_write_and_read(self, tmp_path):
        """Test parent directories are created and the byte count returned"""
        path = tmp_path / 'ns' / 'Secret.a.yaml'
        size = write_document(path, {'kind': 'Secret'})

        assert size == path.stat().st_size
        assert yaml.safe_load(path.read_text()) == {'kind': 'Secret'}
        assert read_document(path) == {'kind': 'Secret'}

    @pytest.mark.parametrize('content', ['a: [unclosed\n', '- a\n- b\n'])
    def test_read_invalid_file(self, tmp_path, content):
        """Test unreadable files raise DocumentError naming the file"""
        path = tmp_path / 'broken.yaml'
        path.write_text(content)

        with pytest.raises(DocumentError, match='broken.yaml'):
            read_document(path)

    def test_read_missing_file(self, tmp_path):
        """Test a missing file raises DocumentError"""
        with pytest.raises(DocumentError, match='missing.yaml'):
            read_document(tmp_path / 'missing.yaml')
