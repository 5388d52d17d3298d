"""
Environment Management Module for Kubexporter

Uses python-dotenv for environment variable management.

Usage:
    from kubexporter.core.env import env

    print(env.logs_dir)
    print(env.log_level)
    print(env.aes_key)
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


# Global constants
KUBEXPORTER_VERSION = '0.1.0'

ENV_FILE_VAR = 'KUBEXPORTER_ENV_FILE'
ENV_AES_KEY = 'KUBEXPORTER_AES_KEY'


def _env_file() -> Path:
    return Path(os.getenv(ENV_FILE_VAR, '.env'))


def load_env_file(path: Optional[str] = None, override: bool = False) -> bool:
    """
    Load environment variables from a .env file

    Args:
        path: Explicit .env path (defaults to KUBEXPORTER_ENV_FILE or ./.env)
        override: Override variables that are already set

    Returns:
        True if a file was found and loaded
    """
    env_file = Path(path) if path else _env_file()
    if env_file.exists():
        return load_dotenv(env_file, override=override)
    return False


class EnvConfig:
    """Environment configuration object"""

    @property
    def logs_dir(self) -> str:
        return os.getenv('KUBEXPORTER_LOGGING_DIR', 'logs')

    @property
    def log_level(self) -> str:
        return os.getenv('KUBEXPORTER_LOGGING_CONSOLE_LEVEL', 'INFO')

    @property
    def log_file_enabled(self) -> bool:
        return os.getenv('KUBEXPORTER_LOGGING_FILE_ENABLED', 'false').lower() == 'true'

    @property
    def log_file_level(self) -> str:
        return os.getenv('KUBEXPORTER_LOGGING_FILE_LEVEL', 'DEBUG')

    @property
    def log_simple_format(self) -> bool:
        return os.getenv('KUBEXPORTER_LOGGING_CONSOLE_SIMPLE_FORMAT', 'true').lower() == 'true'

    @property
    def log_max_files(self) -> int:
        return int(os.getenv('KUBEXPORTER_LOGGING_MAX_FILES', '5'))

    @property
    def log_max_size(self) -> str:
        return os.getenv('KUBEXPORTER_LOGGING_MAX_SIZE', '10MB')

    @property
    def aes_key(self) -> Optional[str]:
        """Encryption key override, takes precedence over the config file"""
        return os.getenv(ENV_AES_KEY)

    @property
    def version(self) -> str:
        return KUBEXPORTER_VERSION


# Global env object
env = EnvConfig()

load_env_file()
