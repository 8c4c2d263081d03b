"""Hook specifications for kubectl-multi command plugins.

Commands, built-in or external, integrate with the CLI by implementing
these hooks. External commands are discovered through the
'kubectl_multi.commands' entry point group.
"""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from kubectl_multi.plugin import CommandMetadata
    from kubectl_multi.session import MultiClusterSession

PROJECT_NAME = "kubectl_multi"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class KubectlMultiHookSpec:
    """Hooks a command plugin can implement."""

    @hookspec
    def kubectl_multi_get_command_metadata(self) -> CommandMetadata:  # type: ignore[empty-body]
        """Return metadata describing the command."""

    @hookspec
    def kubectl_multi_register_command(
        self,
        subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    ) -> None:
        """Add the command's subparser and bind its handler."""

    @hookspec
    def kubectl_multi_check_prerequisites(
        self,
        session: MultiClusterSession,
    ) -> tuple[bool, str]:  # type: ignore[empty-body]
        """Check that the command can run, returning (ok, message)."""
