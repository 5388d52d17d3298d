"""Tests for kubexporter/core/cli.py"""

from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from kubexporter import __version__
from kubexporter.core.cli import cli, parse_field_options
from kubexporter.core.env import ENV_AES_KEY
from kubexporter.core.errors import ConfigurationError
from kubexporter.transform.encrypted import PREFIX

from utils import AES_KEY


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cluster_patch(fake_cluster):
    with patch('kubexporter.core.cli.KubernetesClusterAPI', return_value=fake_cluster) as mock_api:
        yield mock_api


@pytest.mark.usefixtures('isolated_logging')
class TestParseFieldOptions:
    """Test cases for --field parsing"""

    def test_parse(self):
        """Test repeated kind=path options"""
        fields = parse_field_options(('Secret=data', 'Secret=stringData', 'apps.Deployment=spec.template'))
        assert fields == {
            'Secret': [['data'], ['stringData']],
            'apps.Deployment': [['spec', 'template']],
        }

    @pytest.mark.parametrize('value', ['Secret', '=data', 'Secret=', 'Secret=...'])
    def test_invalid(self, value):
        """Test malformed options"""
        with pytest.raises(ConfigurationError):
            parse_field_options((value,))


@pytest.mark.usefixtures('isolated_logging')
class TestExportCommand:
    """Test cases for the export command"""

    def test_version(self, runner):
        """Test --version"""
        result = runner.invoke(cli, ['--version'], obj={})
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_export_is_default(self, runner, cluster_patch, tmp_path):
        """Test running without a subcommand exports"""
        target = tmp_path / 'out'
        config = tmp_path / 'config.yaml'
        config.write_text(f"target: {target}\nprogress: none\n")

        result = runner.invoke(cli, ['-c', str(config), '--context', 'kind-test'], obj={})

        assert result.exit_code == 0, result.output
        cluster_patch.assert_called_once_with(None, 'kind-test')
        assert (target / 'default' / 'Secret.db-credentials.yaml').exists()

    def test_export_options(self, runner, cluster_patch, tmp_path):
        """Test command line flags override the config"""
        target = tmp_path / 'out'

        result = runner.invoke(cli, [
            'export', '-t', str(target), '-n', 'staging', '-o', 'json',
            '-w', '2', '--as-lists', '--progress', 'none',
        ], obj={})

        assert result.exit_code == 0, result.output
        assert (target / 'staging' / 'ConfigMap.json').exists()
        assert not (target / 'default').exists()
        assert not (target / '_cluster_').exists()

    def test_configuration_error_exits_1(self, runner, cluster_patch, tmp_path):
        """Test fatal errors print the cause and exit with 1"""
        result = runner.invoke(cli, ['export', '-t', str(tmp_path), '-w', '0'], obj={})

        assert result.exit_code == 1
        assert '❌' in result.output
        assert 'worker must be > 0' in result.output

    def test_missing_config_file(self, runner, cluster_patch, tmp_path):
        """Test a missing config file exits with 1"""
        result = runner.invoke(cli, ['-c', str(tmp_path / 'none.yaml'), 'export'], obj={})
        assert result.exit_code == 1
        assert 'Config file not found' in result.output


@pytest.mark.usefixtures('isolated_logging')
class TestEncryptCommands:
    """Test cases for encrypt and decrypt"""

    def _write(self, path, doc):
        path.write_text(yaml.safe_dump(doc))
        return str(path)

    def test_encrypt_then_decrypt(self, runner, tmp_path):
        """Test default Secret fields are sealed and opened again"""
        secret = {'apiVersion': 'v1', 'kind': 'Secret',
                  'metadata': {'name': 'db', 'namespace': 'default'},
                  'data': {'password': 'c2VjcmV0'}}
        path = self._write(tmp_path / 'secret.yaml', secret)

        result = runner.invoke(cli, ['encrypt', path, '--aes-key', AES_KEY], obj={})
        assert result.exit_code == 0, result.output
        assert 'Encrypted Fields' in result.output
        sealed = yaml.safe_load(open(path))
        assert sealed['data']['password'].startswith(PREFIX)

        result = runner.invoke(cli, ['decrypt', path, '--aes-key', AES_KEY], obj={})
        assert result.exit_code == 0, result.output
        assert 'Decrypted Fields' in result.output
        assert yaml.safe_load(open(path)) == secret

    def test_encrypt_custom_field_with_env_key(self, runner, tmp_path, monkeypatch):
        """Test --field and the environment key"""
        monkeypatch.setenv(ENV_AES_KEY, AES_KEY)
        doc = {'apiVersion': 'v1', 'kind': 'ConfigMap', 'metadata': {'name': 'c'},
               'data': {'token': 'abc'}}
        path = self._write(tmp_path / 'cm.yaml', doc)

        result = runner.invoke(cli, ['encrypt', path, '--field', 'ConfigMap=data.token'], obj={})

        assert result.exit_code == 0, result.output
        assert yaml.safe_load(open(path))['data']['token'].startswith(PREFIX)

    def test_decrypt_wrong_key(self, runner, tmp_path):
        """Test a wrong key aborts with exit code 1"""
        doc = {'kind': 'Secret', 'metadata': {'name': 's'}, 'data': {'a': 'b'}}
        path = self._write(tmp_path / 's.yaml', doc)
        runner.invoke(cli, ['encrypt', path, '--aes-key', AES_KEY], obj={})

        result = runner.invoke(cli, ['decrypt', path, '--aes-key', 'x' * 32], obj={})

        assert result.exit_code == 1
        assert '❌' in result.output

    @pytest.mark.parametrize('command', ['encrypt', 'decrypt'])
    def test_unparsable_file(self, runner, tmp_path, command):
        """Test a file that is not valid YAML prints the cause and exits 1"""
        path = tmp_path / 'broken.yaml'
        path.write_text('a: [unclosed\n')

        result = runner.invoke(cli, [command, str(path), '--aes-key', AES_KEY], obj={})

        assert result.exit_code == 1
        assert '❌' in result.output
        assert 'broken.yaml' in result.output
        assert path.read_text() == 'a: [unclosed\n'

    def test_invalid_key_size(self, runner, tmp_path):
        """Test a key of the wrong size is rejected"""
        path = self._write(tmp_path / 's.yaml', {'kind': 'Secret', 'data': {'a': 'b'}})
        result = runner.invoke(cli, ['encrypt', path, '--aes-key', 'short'], obj={})
        assert result.exit_code == 1
        assert 'invalid key size' in result.output


@pytest.mark.usefixtures('isolated_logging')
class TestUpdateOwnerReferences:
    """Test cases for update-owner-references"""

    def test_uor_alias(self, runner, cluster_patch, tmp_path):
        """Test the short alias repairs stale owner UIDs"""
        path = tmp_path / 'default' / 'ConfigMap.child.yaml'
        path.parent.mkdir(parents=True)
        path.write_text(yaml.safe_dump({
            'apiVersion': 'v1', 'kind': 'ConfigMap',
            'metadata': {
                'name': 'child', 'namespace': 'default',
                'ownerReferences': [{'apiVersion': 'v1', 'kind': 'Secret',
                                     'name': 'db-credentials', 'uid': 'old-uid'}],
            },
        }))

        result = runner.invoke(cli, ['uor', '-t', str(tmp_path)], obj={})

        assert result.exit_code == 0, result.output
        refs = yaml.safe_load(path.read_text())['metadata']['ownerReferences']
        assert refs[0]['uid'] == 'uid-db-credentials'
        assert 'ConfigMap.child.yaml' in result.output

    def test_uor_unreadable_file(self, runner, cluster_patch, tmp_path):
        """Test a broken export file is reported instead of raising"""
        (tmp_path / 'ConfigMap.broken.yaml').write_text('metadata: {name: [\n')

        result = runner.invoke(cli, ['uor', '-t', str(tmp_path)], obj={})

        assert result.exit_code == 1
        assert '❌' in result.output
        assert 'ConfigMap.broken.yaml' in result.output
