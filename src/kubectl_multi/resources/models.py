"""Untyped resource envelope for generically resolved types."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from kubectl_multi.resources.resolver import ResourceTypeResolution


class ResourceEnvelope(BaseModel):
    """A resource of a type unknown until runtime.

    Carries the type tag alongside the opaque document so callers never
    need to guess what they are holding.
    """

    group: str = Field("", description="API group, empty for core")
    version: str = Field(..., description="API version")
    kind: str = Field("", description="Resource kind")
    namespaced: bool = Field(True, description="Whether the type is namespace-scoped")
    document: dict[str, Any] = Field(default_factory=dict, description="Raw object")

    @classmethod
    def from_resource(cls, resolution: ResourceTypeResolution, obj: Any) -> ResourceEnvelope:
        """Wrap a dynamic client object (or plain dict) with its type."""
        document = obj.to_dict() if hasattr(obj, "to_dict") else dict(obj)
        return cls(
            group=resolution.group,
            version=resolution.version,
            kind=document.get("kind") or resolution.kind,
            namespaced=resolution.namespaced,
            document=document,
        )

    def field(self, *path: str, default: Any = None) -> Any:
        """Look up a nested key, returning default if any step is missing."""
        current: Any = self.document
        for key in path:
            if not isinstance(current, dict) or key not in current:
                return default
            current = current[key]
        return default if current is None else current

    @property
    def name(self) -> str:
        return self.field("metadata", "name", default="")

    @property
    def namespace(self) -> str | None:
        return self.field("metadata", "namespace")

    @property
    def labels(self) -> dict[str, str]:
        return dict(self.field("metadata", "labels", default={}))

    @property
    def creation_timestamp(self) -> datetime | None:
        value = self.field("metadata", "creationTimestamp")
        if isinstance(value, datetime):
            return value
        if not value:
            return None
        try:
            return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
