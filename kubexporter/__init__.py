"""
Kubexporter

Exports every resource instance of a Kubernetes cluster to the local filesystem:
- Concurrent per-kind export with pagination
- Field exclusion, masking, encryption and slice sorting
- Archive creation, retention pruning and S3/GCS upload
- Owner-reference repair of existing exports
"""

__version__ = "0.1.0"
__all__ = [
    'core',
    'common',
    'model',
    'document',
    'transform',
    'export',
    'uor',
    'render',
]
