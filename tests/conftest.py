"""Pytest configuration and shared fixtures for the kubexporter test suite"""

from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from kubexporter.common.logger import KubexporterLogger
from kubexporter.core.config import ExportConfig
from kubexporter.core.env import ENV_AES_KEY

from utils import FakeClusterAPI, make_doc, make_resource


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the AES key environment override out of every test"""
    monkeypatch.delenv(ENV_AES_KEY, raising=False)
    yield


@pytest.fixture
def isolated_logging():
    """Run with an empty logger registry and restore the module loggers afterwards"""
    saved = {k: v for k, v in vars(KubexporterLogger).items()
             if k.startswith('_') and not k.startswith('__')}
    levels = {name: [h.level for h in logger.handlers]
              for name, logger in KubexporterLogger._loggers.items()}
    KubexporterLogger._loggers = {}
    KubexporterLogger._initialized = False
    yield
    KubexporterLogger.reset()
    for key, value in saved.items():
        setattr(KubexporterLogger, key, value)
    for name, logger in KubexporterLogger._loggers.items():
        for handler, level in zip(logger.handlers, levels.get(name, [])):
            handler.setLevel(level)


@pytest.fixture
def project_root():
    """Get project root directory"""
    return Path(__file__).parent.parent


@pytest.fixture
def target_dir(tmp_path):
    return tmp_path / 'exports'


@pytest.fixture
def make_config(target_dir):
    """Factory for validated export configs writing below tmp_path"""
    def _make(data: Optional[Dict[str, Any]] = None, **overrides: Any) -> ExportConfig:
        config = ExportConfig.from_dict(data or {})
        config.progress = 'none'
        config.target = str(target_dir)
        config.apply_overrides(**overrides)
        return config.validate()
    return _make


@pytest.fixture
def fake_cluster():
    """Cluster with a handful of namespaced and cluster scoped kinds"""
    resources = [
        make_resource('Secret'),
        make_resource('ConfigMap'),
        make_resource('Deployment', group='apps'),
        make_resource('Namespace', namespaced=False),
        make_resource('TokenReview', group='authentication.k8s.io', verbs=['create']),
    ]
    objects = {
        'Secret': [
            make_doc('Secret', 'db-credentials', data={'password': 'c2VjcmV0', 'user': 'YWRtaW4='}),
        ],
        'ConfigMap': [
            make_doc('ConfigMap', 'app-config', data={'mode': 'prod'}),
            make_doc('ConfigMap', 'app-config', namespace='staging', data={'mode': 'staging'}),
        ],
        'apps.Deployment': [
            make_doc('Deployment', 'web', api_version='apps/v1',
                     spec={'replicas': 2}, status={'readyReplicas': 2}),
        ],
        'Namespace': [
            make_doc('Namespace', 'default', namespace=''),
            make_doc('Namespace', 'staging', namespace=''),
        ],
    }
    return FakeClusterAPI(resources, objects)


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "core: mark test as testing config, env and the command line"
    )
    config.addinivalue_line(
        "markers", "common: mark test as testing common libraries"
    )
    config.addinivalue_line(
        "markers", "transform: mark test as testing field transformations"
    )
    config.addinivalue_line(
        "markers", "export: mark test as testing the export pipeline"
    )
    config.addinivalue_line(
        "markers", "uor: mark test as testing the owner reference update"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically"""
    for item in items:
        test_path = str(item.fspath)

        if '/unit/' in test_path:
            item.add_marker(pytest.mark.unit)
        elif '/integration/' in test_path:
            item.add_marker(pytest.mark.integration)

        for component in ('core', 'common', 'transform', 'export', 'uor'):
            if f'/{component}/' in test_path:
                item.add_marker(getattr(pytest.mark, component))
