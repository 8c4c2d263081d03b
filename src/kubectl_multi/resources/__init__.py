"""Resource-type resolution and untyped resource envelopes."""

from kubectl_multi.resources.models import ResourceEnvelope
from kubectl_multi.resources.resolver import (
    ResourceTypeResolution,
    normalize_resource_type,
    resolve_resource_type,
    static_resolution,
)

__all__ = [
    "ResourceEnvelope",
    "ResourceTypeResolution",
    "normalize_resource_type",
    "resolve_resource_type",
    "static_resolution",
]
