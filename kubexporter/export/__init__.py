"""
Export Pipeline

Cluster access, worker pool, output writing, archiving and upload.
"""

from .client import ClusterAPI, KubernetesClusterAPI, ListPage
from .exporter import Exporter
from .pool import Dispatcher
from .worker import Worker

__all__ = [
    'ClusterAPI',
    'Dispatcher',
    'Exporter',
    'KubernetesClusterAPI',
    'ListPage',
    'Worker',
]
