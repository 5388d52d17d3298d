"""
Cluster API

The export pipeline only talks to the cluster through the ClusterAPI
interface: discover kinds, list one page of instances, get one object.
KubernetesClusterAPI implements it with the dynamic client of the
kubernetes package. Documents are normalized into plain JSON-like values
here, so nothing downstream sees client model objects.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import (
    DynamicApiError,
    MethodNotAllowedError as DynamicMethodNotAllowedError,
    NotFoundError as DynamicNotFoundError,
    ResourceNotFoundError,
)
from kubernetes.dynamic.resource import ResourceList

from kubexporter.common.logger import get_logger
from kubexporter.core.errors import (
    ClusterAPIError,
    ConfigurationError,
    MethodNotAllowedError,
    NotFoundError,
)
from kubexporter.document import normalize
from kubexporter.model import GroupResource

logger = get_logger(__name__)


@dataclass
class ListPage:
    """One page of a list call"""
    items: List[Dict[str, Any]] = field(default_factory=list)
    continue_token: str = ''
    api_version: str = ''
    kind: str = ''


class ClusterAPI(ABC):
    """Access to the cluster state"""

    @property
    def host(self) -> str:
        return ''

    @abstractmethod
    def discover_kinds(self) -> List[GroupResource]:
        """All kinds served by the cluster in their preferred version"""

    @abstractmethod
    def list_page(self, resource: GroupResource, namespace: Optional[str] = None,
                  continue_token: str = '', limit: int = 0) -> ListPage:
        """
        List one page of instances

        Raises:
            NotFoundError: The kind is not served
            MethodNotAllowedError: Listing is not allowed
            ClusterAPIError: Any other API failure
        """

    @abstractmethod
    def get_object(self, api_version: str, kind: str, namespace: Optional[str],
                   name: str) -> Dict[str, Any]:
        """Get one live object, raises NotFoundError if it does not exist"""


def _translate(e: Exception) -> ClusterAPIError:
    if isinstance(e, (DynamicNotFoundError, ResourceNotFoundError)):
        return NotFoundError(str(e))
    if isinstance(e, DynamicMethodNotAllowedError):
        return MethodNotAllowedError(str(e))
    if isinstance(e, DynamicApiError):
        return ClusterAPIError(e.summary())
    return ClusterAPIError(str(e))


class KubernetesClusterAPI(ClusterAPI):
    """ClusterAPI backed by the kubernetes dynamic client"""

    def __init__(self, kubeconfig: Optional[str] = None, context: Optional[str] = None):
        try:
            config.load_kube_config(config_file=kubeconfig, context=context)
        except (ConfigException, FileNotFoundError, TypeError) as e:
            if kubeconfig or context:
                raise ConfigurationError(f"cannot load kube config: {e}") from e
            logger.debug(f"No kube config found ({e}), trying in-cluster config")
            try:
                config.load_incluster_config()
            except ConfigException as ie:
                raise ConfigurationError(f"no cluster configuration found: {ie}") from ie

        self._api_client = client.ApiClient()
        try:
            self._dynamic = DynamicClient(self._api_client)
        except Exception as e:
            raise ClusterAPIError(f"cluster discovery failed: {e}") from e

    @property
    def host(self) -> str:
        return self._api_client.configuration.host

    def discover_kinds(self) -> List[GroupResource]:
        resources = []
        seen = set()
        for r in self._dynamic.resources.search():
            if isinstance(r, ResourceList) or '/' in (r.name or ''):
                continue
            if not getattr(r, 'preferred', False):
                continue
            key = (r.group or '', r.kind)
            if key in seen:
                continue
            seen.add(key)
            resources.append(GroupResource(
                api_group=r.group or '',
                api_version=r.api_version,
                kind=r.kind,
                namespaced=bool(r.namespaced),
                name=r.name,
                verbs=list(r.verbs or []),
            ))
        logger.debug(f"Discovered {len(resources)} kinds")
        return resources

    def _resource(self, api_version: str, kind: str):
        try:
            return self._dynamic.resources.get(api_version=api_version, kind=kind)
        except ResourceNotFoundError as e:
            raise NotFoundError(f"{kind} in {api_version}: {e}") from e

    def list_page(self, resource: GroupResource, namespace: Optional[str] = None,
                  continue_token: str = '', limit: int = 0) -> ListPage:
        api = self._resource(resource.api_group_version, resource.kind)
        params: Dict[str, Any] = {}
        if limit > 0:
            params['limit'] = limit
        if continue_token:
            params['_continue'] = continue_token
        try:
            result = self._dynamic.get(api, namespace=namespace or None, **params)
        except DynamicApiError as e:
            raise _translate(e) from e

        data = normalize(result.to_dict())
        return ListPage(
            items=data.get('items') or [],
            continue_token=(data.get('metadata') or {}).get('continue') or '',
            api_version=data.get('apiVersion') or resource.api_group_version,
            kind=data.get('kind') or f"{resource.kind}List",
        )

    def get_object(self, api_version: str, kind: str, namespace: Optional[str],
                   name: str) -> Dict[str, Any]:
        api = self._resource(api_version, kind)
        try:
            if api.namespaced:
                result = self._dynamic.get(api, name=name, namespace=namespace)
            else:
                result = self._dynamic.get(api, name=name)
        except DynamicApiError as e:
            raise _translate(e) from e
        return normalize(result.to_dict())
