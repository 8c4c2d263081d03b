"""Generic resource-type resolution.

Turns a free-form type token ('po', 'Deployment', 'certificates') into the
group/version/resource triple a given cluster serves. The live schema of the
cluster always wins over the static table of built-ins, because served API
groups can differ between clusters. Results are never cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kubectl_multi.clients.discovery import DiscoveryClient
from kubectl_multi.utils.errors import ResourceDiscoveryError

logger = logging.getLogger(__name__)

SHORT_ALIASES: dict[str, str] = {
    "po": "pods",
    "svc": "services",
    "no": "nodes",
    "ns": "namespaces",
    "pv": "persistentvolumes",
    "pvc": "persistentvolumeclaims",
    "cm": "configmaps",
    "deploy": "deployments",
    "rs": "replicasets",
    "ds": "daemonsets",
    "sts": "statefulsets",
    "job": "jobs",
    "cj": "cronjobs",
    "ing": "ingresses",
    "ep": "endpoints",
    "sa": "serviceaccounts",
}


@dataclass(frozen=True)
class ResourceTypeResolution:
    """A resource type as served by one cluster."""

    group: str
    version: str
    resource: str
    kind: str = ""
    namespaced: bool = True

    @property
    def api_version(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    @property
    def type_identifier(self) -> str:
        """Group/version/resource string, e.g. 'apps/v1/deployments'."""
        return f"{self.api_version}/{self.resource}"


# (group, version, kind, namespaced) for well-known built-ins
_STATIC_DEFAULTS: dict[str, tuple[str, str, str, bool]] = {
    "pods": ("", "v1", "Pod", True),
    "services": ("", "v1", "Service", True),
    "configmaps": ("", "v1", "ConfigMap", True),
    "secrets": ("", "v1", "Secret", True),
    "endpoints": ("", "v1", "Endpoints", True),
    "serviceaccounts": ("", "v1", "ServiceAccount", True),
    "persistentvolumeclaims": ("", "v1", "PersistentVolumeClaim", True),
    "events": ("", "v1", "Event", True),
    "nodes": ("", "v1", "Node", False),
    "namespaces": ("", "v1", "Namespace", False),
    "persistentvolumes": ("", "v1", "PersistentVolume", False),
    "deployments": ("apps", "v1", "Deployment", True),
    "replicasets": ("apps", "v1", "ReplicaSet", True),
    "daemonsets": ("apps", "v1", "DaemonSet", True),
    "statefulsets": ("apps", "v1", "StatefulSet", True),
    "jobs": ("batch", "v1", "Job", True),
    "cronjobs": ("batch", "v1", "CronJob", True),
    "ingresses": ("networking.k8s.io", "v1", "Ingress", True),
}


def normalize_resource_type(token: str) -> str:
    """Lower-case a type token and expand it to its plural form."""
    lowered = token.strip().lower()
    if lowered in SHORT_ALIASES:
        return SHORT_ALIASES[lowered]
    if lowered in _STATIC_DEFAULTS:
        return lowered
    if lowered.endswith(("ss", "x", "ch", "sh")):
        return lowered + "es"
    if lowered.endswith("s"):
        return lowered
    if len(lowered) > 1 and lowered.endswith("y") and lowered[-2] not in "aeiou":
        return lowered[:-1] + "ies"
    return lowered + "s"


def static_resolution(token: str) -> ResourceTypeResolution:
    """Resolve a token from the built-in table only.

    Unknown tokens resolve to a namespaced core-group resource.
    """
    normalized = normalize_resource_type(token)
    if normalized in _STATIC_DEFAULTS:
        group, version, kind, namespaced = _STATIC_DEFAULTS[normalized]
        return ResourceTypeResolution(group, version, normalized, kind, namespaced)
    return ResourceTypeResolution("", "v1", normalized, "", True)


def resolve_resource_type(
    discovery: DiscoveryClient,
    token: str,
    timeout: float | None = None,
) -> ResourceTypeResolution:
    """Resolve a type token against one cluster's live schema.

    Args:
        discovery: Schema discovery client of the target cluster.
        token: Type token as typed by the user.
        timeout: Request timeout in seconds for schema discovery.

    Returns:
        The live match if any, else the static default.

    Raises:
        ResourceDiscoveryError: If the cluster's schema could not be read.
    """
    normalized = normalize_resource_type(token)
    candidates = {normalized, token.strip().lower()}

    try:
        served = discovery.server_resources(timeout=timeout)
    except Exception as e:
        raise ResourceDiscoveryError(f"failed to discover API resources: {e}") from e

    for info in served:
        names = {info.name.lower(), info.singular_name.lower()}
        names.update(s.lower() for s in info.short_names)
        names.discard("")
        if names & candidates:
            resolution = ResourceTypeResolution(
                group=info.group,
                version=info.version,
                resource=info.name,
                kind=info.kind,
                namespaced=info.namespaced,
            )
            logger.debug(f"Resolved {token!r} to {resolution.type_identifier}")
            return resolution

    logger.debug(f"No served match for {token!r}, using static defaults")
    return static_resolution(token)
