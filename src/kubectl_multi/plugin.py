"""Command plugin interface.

Every kubectl-multi subcommand is a plugin: it declares metadata, adds its
subparser, and handles the parsed arguments with a MultiClusterSession.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import TYPE_CHECKING

from kubectl_multi.hooks import hookimpl

if TYPE_CHECKING:
    from kubectl_multi.session import MultiClusterSession


@dataclass
class CommandMetadata:
    """Metadata describing a kubectl-multi command."""

    name: str
    """Subcommand name, e.g., 'get', 'logs'."""

    description: str
    """One-line help text shown in the command list."""

    version: str = "1.0.0"
    """Plugin version following semver."""

    requires_kubectl: bool = False
    """Whether the command delegates to the kubectl binary.

    Such commands are refused up front when kubectl is not on PATH,
    instead of failing once per cluster.
    """

    passthrough_args: bool = False
    """Whether unrecognized arguments are forwarded to kubectl as extra_args."""


class BaseCommand:
    """Base implementation of a command plugin.

    Subclasses override add_arguments() and run(). The registration hook
    binds run() as the subparser's handler.

    Example entry point in pyproject.toml for external commands:
        [project.entry-points."kubectl_multi.commands"]
        my_command = "my_package.commands:MyCommand"
    """

    def __init__(self, metadata: CommandMetadata) -> None:
        self._metadata = metadata

    @property
    def metadata(self) -> CommandMetadata:
        return self._metadata

    @hookimpl
    def kubectl_multi_get_command_metadata(self) -> CommandMetadata:
        """Return command metadata."""
        return self._metadata

    @hookimpl
    def kubectl_multi_register_command(
        self,
        subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    ) -> None:
        parser = subparsers.add_parser(
            self._metadata.name,
            help=self._metadata.description,
            description=self._metadata.description,
        )
        self.add_arguments(parser)
        parser.set_defaults(command=self)

    @hookimpl
    def kubectl_multi_check_prerequisites(self, session: MultiClusterSession) -> tuple[bool, str]:
        """Verify kubectl is available when the command needs it."""
        if not self._metadata.requires_kubectl:
            return True, "No prerequisites"
        if not session.runner.is_available():
            return False, f"{session.runner.binary} not found in PATH"
        return True, f"{session.runner.binary} available"

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        """Add command-specific arguments. Override in subclass."""
        pass

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        """Execute the command and return an exit status. Override in subclass."""
        raise NotImplementedError
