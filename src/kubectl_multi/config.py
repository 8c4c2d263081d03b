"""Configuration for kubectl-multi.

A single MultiClusterConfig is built at the CLI entry point from command-line
arguments layered over environment variables (KUBECTL_MULTI_*) and defaults,
and is passed explicitly into discovery, dispatch and command handlers.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_KUBECONFIG = Path("~/.kube/config")
DEFAULT_NAMESPACE = "default"


class LogLevel(str, Enum):
    """Logging verbosity."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class MultiClusterConfig(BaseSettings):
    """Settings shared by every multi-cluster command."""

    model_config = SettingsConfigDict(
        env_prefix="KUBECTL_MULTI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    kubeconfig_path: str | None = Field(
        default=None,
        description="Path to the kubeconfig file (default: $KUBECONFIG or ~/.kube/config)",
    )
    remote_context: str | None = Field(
        default="its1",
        description="Context of the inventory cluster holding ManagedCluster objects",
    )
    namespace: str | None = Field(
        default=None,
        description="Target namespace",
    )
    all_namespaces: bool = Field(
        default=False,
        description="Operate across all namespaces",
    )
    max_concurrency: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum clusters handled at once by mutating operations",
    )
    cluster_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-cluster deadline in seconds for a single call",
    )
    kubectl_binary: str = Field(
        default="kubectl",
        description="kubectl executable used for delegated operations",
    )
    log_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Logging level",
    )

    @field_validator("remote_context", "namespace", "kubeconfig_path")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def target_namespace(self) -> str | None:
        """Namespace to scope namespaced calls to, or None for all namespaces."""
        if self.all_namespaces:
            return None
        return self.namespace or DEFAULT_NAMESPACE

    def resolved_kubeconfig_path(self) -> Path:
        """Resolve the kubeconfig file that will be loaded.

        An explicit path wins, then the first entry of $KUBECONFIG, then
        ~/.kube/config.
        """
        return resolve_kubeconfig_path(self.kubeconfig_path)


def resolve_kubeconfig_path(explicit: str | None = None) -> Path:
    """Resolve a kubeconfig path the way kubectl does for a single file."""
    if explicit:
        return Path(explicit).expanduser()
    env_value = os.environ.get("KUBECONFIG", "")
    for entry in env_value.split(os.pathsep):
        if entry:
            return Path(entry).expanduser()
    return DEFAULT_KUBECONFIG.expanduser()
