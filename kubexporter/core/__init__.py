"""
Kubexporter Core Modules

This package contains the core functionality of kubexporter including:
- Command line interface
- Export configuration loading and validation
- Environment configuration
- Error types
"""

__version__ = "0.1.0"
__all__ = [
    'cli',
    'config',
    'env',
    'errors',
]
