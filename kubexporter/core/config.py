"""
Export Configuration

Loads the YAML export configuration into an ExportConfig, applies command
line overrides and validates the result once. After validate() the
config is only read, so every worker can share it without locking.

Example config:

    excluded:
      kinds: [Event, events.k8s.io.Event]
      kindFields:
        Service: [spec.clusterIP]
      preservedFields:
        - status.phase
    masked:
      checksum: sha256
      kindFields:
        Secret: [data]
    worker: 4
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml
from jinja2 import Environment, TemplateError

from kubexporter.common.documents import FORMATS
from kubexporter.common.utils import parse_duration, safe_relative_path
from kubexporter.core.errors import ConfigurationError
from kubexporter.model import FieldValue, GroupResource, KindFields
from kubexporter.model.fields import FieldPathList, parse_field_paths
from kubexporter.transform.encrypted import EncryptionConfig
from kubexporter.transform.masked import MaskConfig

DEFAULT_FILE_NAME_TEMPLATE = (
    '{{ Namespace | default("_cluster_", true) }}/'
    '{% if Group %}{{ Group }}.{% endif %}{{ Kind }}.{{ Name }}.{{ Extension }}'
)
DEFAULT_LIST_FILE_NAME_TEMPLATE = (
    '{{ Namespace | default("_cluster_", true) }}/'
    '{% if Group %}{{ Group }}.{% endif %}{{ Kind }}.{{ Extension }}'
)
DEFAULT_FORMAT = 'yaml'
DEFAULT_TARGET = 'exports'

PROGRESS_BAR = 'bar'
PROGRESS_SIMPLE = 'simple'
PROGRESS_NONE = 'none'

DEFAULT_EXCLUDED_FIELDS: FieldPathList = [
    ['status'],
    ['metadata', 'uid'],
    ['metadata', 'selfLink'],
    ['metadata', 'resourceVersion'],
    ['metadata', 'creationTimestamp'],
    ['metadata', 'deletionTimestamp'],
    ['metadata', 'deletionGracePeriodSeconds'],
    ['metadata', 'generation'],
    ['metadata', 'managedFields'],
    ['metadata', 'annotations', 'kubectl.kubernetes.io/last-applied-configuration'],
]

_templates = Environment(autoescape=False, keep_trailing_newline=False)


@dataclass
class ExcludedConfig:
    """Exclusion params"""
    kinds: List[str] = field(default_factory=list)
    fields: FieldPathList = field(default_factory=lambda: [list(f) for f in DEFAULT_EXCLUDED_FIELDS])
    kind_fields: KindFields = field(default_factory=KindFields)
    kinds_by_field: Dict[str, List[FieldValue]] = field(default_factory=dict)
    preserved_fields: FieldPathList = field(default_factory=list)

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> 'ExcludedConfig':
        data = data or {}
        excluded = cls(
            kinds=[str(k) for k in (data.get('kinds') or [])],
            kind_fields=KindFields.from_config(data.get('kindFields')),
            kinds_by_field={
                str(kind): [FieldValue.from_config(fv) for fv in (values or [])]
                for kind, values in (data.get('kindByField') or {}).items()
            },
            preserved_fields=parse_field_paths(data.get('preservedFields')),
        )
        if 'fields' in data:
            excluded.fields = parse_field_paths(data.get('fields'))
        return excluded


@dataclass
class S3Config:
    """S3 compatible upload target"""
    endpoint: str = ''
    access_key_id: str = ''
    secret_access_key: str = ''
    token: str = ''
    secure: bool = False
    bucket: str = ''
    region: str = ''

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> Optional['S3Config']:
        if not data:
            return None
        return cls(
            endpoint=str(data.get('endpoint') or ''),
            access_key_id=str(data.get('accessKeyID') or ''),
            secret_access_key=str(data.get('secretAccessKey') or ''),
            token=str(data.get('token') or ''),
            secure=bool(data.get('secure', False)),
            bucket=str(data.get('bucket') or ''),
            region=str(data.get('region') or ''),
        )


@dataclass
class GCSConfig:
    """Google cloud storage upload target"""
    bucket: str = ''

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> Optional['GCSConfig']:
        if not data:
            return None
        return cls(bucket=str(data.get('bucket') or ''))


@dataclass
class ExportConfig:
    """Export configuration"""
    excluded: ExcludedConfig = field(default_factory=ExcludedConfig)
    included_kinds: List[str] = field(default_factory=list)
    created_within: timedelta = field(default_factory=timedelta)
    consider_owner_references: bool = False
    masked: MaskConfig = field(default_factory=MaskConfig)
    encrypted: EncryptionConfig = field(default_factory=EncryptionConfig)
    sort_slices: KindFields = field(default_factory=KindFields)
    file_name_template: str = DEFAULT_FILE_NAME_TEMPLATE
    list_file_name_template: str = DEFAULT_LIST_FILE_NAME_TEMPLATE
    as_lists: bool = False
    query_page_size: int = 0
    target: str = DEFAULT_TARGET
    clear_target: bool = False
    summary: bool = False
    progress: str = PROGRESS_BAR
    namespace: str = ''
    worker: int = 1
    archive: bool = False
    archive_retention_days: int = 0
    archive_target: str = ''
    s3: Optional[S3Config] = None
    gcs: Optional[GCSConfig] = None
    quiet: bool = False
    verbose: bool = False
    print_size: bool = False
    output_format: str = DEFAULT_FORMAT

    _included_set: Set[str] = field(default_factory=set, init=False, repr=False)
    _excluded_set: Set[str] = field(default_factory=set, init=False, repr=False)
    _file_template: Any = field(default=None, init=False, repr=False)
    _list_template: Any = field(default=None, init=False, repr=False)
    _validated: bool = field(default=False, init=False, repr=False)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ExportConfig':
        """Build a config from parsed YAML, missing keys keep their defaults"""
        data = data or {}
        config = cls()
        try:
            config.excluded = ExcludedConfig.from_config(data.get('excluded'))
            config.included_kinds = [str(k) for k in ((data.get('included') or {}).get('kinds') or [])]
            config.created_within = parse_duration(data.get('createdWithin'))
            config.masked = MaskConfig.from_config(data.get('masked'))
            config.encrypted = EncryptionConfig.from_config(data.get('encrypted'))
            config.sort_slices = KindFields.from_config(data.get('sortSlices'))
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"invalid configuration: {e}") from e

        config.s3 = S3Config.from_config(data.get('s3'))
        config.gcs = GCSConfig.from_config(data.get('gcs'))

        scalars = {
            'considerOwnerReferences': ('consider_owner_references', bool),
            'fileNameTemplate': ('file_name_template', str),
            'listFileNameTemplate': ('list_file_name_template', str),
            'asLists': ('as_lists', bool),
            'queryPageSize': ('query_page_size', int),
            'target': ('target', str),
            'clearTarget': ('clear_target', bool),
            'summary': ('summary', bool),
            'progress': ('progress', str),
            'namespace': ('namespace', str),
            'worker': ('worker', int),
            'archive': ('archive', bool),
            'archiveRetentionDays': ('archive_retention_days', int),
            'archiveTarget': ('archive_target', str),
            'quiet': ('quiet', bool),
            'verbose': ('verbose', bool),
            'printSize': ('print_size', bool),
            'outputFormat': ('output_format', str),
        }
        for key, (attr, convert) in scalars.items():
            if key in data and data[key] is not None:
                try:
                    setattr(config, attr, convert(data[key]))
                except (TypeError, ValueError) as e:
                    raise ConfigurationError(f"invalid value for {key!r}: {data[key]!r}") from e
        return config

    @classmethod
    def from_yaml(cls, path: str) -> 'ExportConfig':
        """Load a config file"""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error reading config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)

    def apply_overrides(self, **overrides: Any) -> 'ExportConfig':
        """Set every override that is not None, used for command line flags"""
        for name, value in overrides.items():
            if value is None:
                continue
            if not hasattr(self, name) or name.startswith('_'):
                raise ConfigurationError(f"unknown config option {name!r}")
            setattr(self, name, value)
        return self

    @property
    def extension(self) -> str:
        return self.output_format

    @property
    def archive_dir(self) -> str:
        return self.archive_target or self.target

    def max_archive_age(self, now: Optional[datetime] = None) -> datetime:
        """Archives modified before this instant are pruned"""
        return (now or datetime.now()) - timedelta(days=self.archive_retention_days)

    def _compile(self, template: str, name: str):
        if not template:
            raise ConfigurationError(f"{name} must not be empty")
        try:
            return _templates.from_string(template)
        except TemplateError as e:
            raise ConfigurationError(f"error parsing {name} [{template}]: {e}") from e

    def _render(self, template, res: GroupResource, namespace: str, name: str) -> str:
        path = template.render(
            Namespace=namespace,
            Name=name,
            Kind=res.kind,
            Group=res.api_group,
            Extension=self.extension,
        )
        return safe_relative_path(path)

    def file_name(self, res: GroupResource, namespace: str, name: str, index: int = 0) -> str:
        """Relative export path of one instance; index > 0 disambiguates case-only name clashes"""
        if index > 0:
            name = f"{name}_{index}"
        return self._render(self._file_template, res, namespace, name)

    def list_file_name(self, res: GroupResource, namespace: str) -> str:
        """Relative export path of the list file of one namespace"""
        return self._render(self._list_template, res, namespace, '')

    def validate(self) -> 'ExportConfig':
        """
        Validate and finalize the config

        Raises:
            ConfigurationError: On the first invalid setting
        """
        if self._validated:
            return self

        self._file_template = self._compile(self.file_name_template, 'file name template')
        self._list_template = self._compile(self.list_file_name_template, 'list file name template')
        try:
            self.file_name(GroupResource(), '', '')
            self.list_file_name(GroupResource(), '')
        except TemplateError as e:
            raise ConfigurationError(f"error rendering file name templates: {e}") from e

        if self.worker <= 0:
            raise ConfigurationError("worker must be > 0")
        if self.query_page_size < 0:
            raise ConfigurationError("queryPageSize must be >= 0")
        if self.archive_retention_days < 0:
            raise ConfigurationError("archiveRetentionDays must be >= 0")

        self.output_format = (self.output_format or DEFAULT_FORMAT).lower()
        if self.output_format == 'yml':
            self.output_format = 'yaml'
        if self.output_format not in FORMATS:
            raise ConfigurationError(
                f"unsupported output format [{self.output_format}], supported are: {', '.join(FORMATS)}"
            )

        if not self.target:
            raise ConfigurationError("target must not be empty")
        try:
            self.target = str(Path(self.target).expanduser().resolve())
            if self.archive_target:
                self.archive_target = str(Path(self.archive_target).expanduser().resolve())
        except (OSError, RuntimeError) as e:
            raise ConfigurationError(f"cannot resolve target path: {e}") from e

        if self.quiet:
            self.summary = False
            self.progress = PROGRESS_NONE
        if self.progress not in (PROGRESS_SIMPLE, PROGRESS_NONE):
            self.progress = PROGRESS_BAR

        self.masked.setup()
        self.encrypted.setup()
        # encryption wins over masking for the same field
        self.masked.kind_fields = self.encrypted.kind_fields.diff(self.masked.kind_fields)

        self._included_set = set(self.included_kinds)
        self._excluded_set = set(self.excluded.kinds)
        self._validated = True
        return self

    def is_excluded(self, res: GroupResource) -> bool:
        """Check if a kind is filtered out, a non-empty include list wins over the exclude list"""
        if self.included_kinds:
            return res.group_kind not in (self._included_set or set(self.included_kinds))
        return res.group_kind in (self._excluded_set or set(self.excluded.kinds))


def load_config(path: Optional[str] = None) -> ExportConfig:
    """Load the config file if given, defaults otherwise"""
    if path:
        if not os.path.exists(path):
            raise ConfigurationError(f"Config file not found: {path}")
        return ExportConfig.from_yaml(path)
    return ExportConfig()
