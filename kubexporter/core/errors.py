"""
Error Types

Exception hierarchy shared by all kubexporter modules.
"""


class KubexporterError(Exception):
    """Base class for all kubexporter errors"""
    pass


class ConfigurationError(KubexporterError):
    """Configuration-related errors, fatal before any work starts"""
    pass


class ClusterAPIError(KubexporterError):
    """Errors returned by the cluster API"""
    pass


class NotFoundError(ClusterAPIError):
    """The requested resource or kind does not exist"""
    pass


class MethodNotAllowedError(ClusterAPIError):
    """The cluster does not allow the requested verb on a kind"""
    pass


class EncryptionError(KubexporterError):
    """Malformed envelope, truncated ciphertext or authentication failure"""
    pass


class ArchiveError(KubexporterError):
    """Errors while creating or pruning archives"""
    pass


class UploadError(KubexporterError):
    """Errors while uploading or pruning remote archives"""
    pass


class ExportCancelled(KubexporterError):
    """The export was cancelled before a kind could be listed"""
    pass


class DocumentError(KubexporterError):
    """An exported file could not be read or parsed"""
    pass
