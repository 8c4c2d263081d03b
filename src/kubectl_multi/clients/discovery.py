"""Live API schema discovery for a single cluster."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from kubernetes import client  # type: ignore[import-untyped]
from kubernetes.client import ApiException  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class APIResourceInfo:
    """One resource type served by a cluster."""

    group_version: str
    name: str
    kind: str
    namespaced: bool
    singular_name: str = ""
    short_names: tuple[str, ...] = field(default_factory=tuple)

    @property
    def group(self) -> str:
        if "/" not in self.group_version:
            return ""
        return self.group_version.split("/", 1)[0]

    @property
    def version(self) -> str:
        return self.group_version.rsplit("/", 1)[-1]


class DiscoveryClient:
    """Reads the resource types a cluster serves.

    Mirrors ServerGroupsAndResources: the core group first, then every served
    version of every API group, preferred version first. Group versions that
    fail to load are skipped so one broken aggregated API does not hide the
    rest of the schema.
    """

    def __init__(self, api_client: client.ApiClient) -> None:
        self._api_client = api_client

    def server_resources(self, timeout: float | None = None) -> list[APIResourceInfo]:
        """List all top-level resource types served by the cluster.

        Raises:
            ApiException: If the core or group index cannot be read.
        """
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["_request_timeout"] = timeout

        core = client.CoreV1Api(self._api_client).get_api_resources(**kwargs)
        resources = _convert("v1", core)

        group_list = client.ApisApi(self._api_client).get_api_versions(**kwargs)
        for group in group_list.groups or []:
            preferred = group.preferred_version.group_version if group.preferred_version else None
            versions = [v.group_version for v in group.versions or []]
            if preferred in versions:
                versions.remove(preferred)
                versions.insert(0, preferred)

            for group_version in versions:
                try:
                    resource_list = self._get_group_version_resources(group_version, timeout)
                except ApiException as e:
                    logger.debug(f"Skipping {group_version}: {e.status} {e.reason}")
                    continue
                resources.extend(_convert(group_version, resource_list))

        return resources

    def _get_group_version_resources(self, group_version: str, timeout: float | None) -> Any:
        return self._api_client.call_api(
            f"/apis/{group_version}",
            "GET",
            header_params={"Accept": "application/json"},
            response_type="V1APIResourceList",
            auth_settings=["BearerToken"],
            _return_http_data_only=True,
            _request_timeout=timeout,
        )


def _convert(group_version: str, resource_list: Any) -> list[APIResourceInfo]:
    """Convert a V1APIResourceList, dropping subresources like 'pods/log'."""
    converted = []
    for res in getattr(resource_list, "resources", None) or []:
        if "/" in res.name:
            continue
        converted.append(
            APIResourceInfo(
                group_version=group_version,
                name=res.name,
                kind=res.kind,
                namespaced=bool(res.namespaced),
                singular_name=res.singular_name or "",
                short_names=tuple(res.short_names or ()),
            )
        )
    return converted
