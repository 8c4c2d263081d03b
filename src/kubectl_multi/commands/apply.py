"""apply: kubectl apply on every execution cluster."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from kubectl_multi.commands.common import run_pooled_kubectl
from kubectl_multi.plugin import BaseCommand, CommandMetadata

if TYPE_CHECKING:
    from kubectl_multi.session import MultiClusterSession


def build_apply_args(
    filename: str,
    recursive: bool = False,
    dry_run: str = "none",
    namespace: str | None = None,
) -> list[str]:
    args = ["apply", "-f", filename]
    if recursive:
        args.append("-R")
    if dry_run and dry_run != "none":
        args.append(f"--dry-run={dry_run}")
    if namespace:
        args.extend(["-n", namespace])
    return args


class ApplyCommand(BaseCommand):
    """Apply a manifest to every cluster, at most max-concurrency at a time."""

    def __init__(self) -> None:
        super().__init__(
            CommandMetadata(
                name="apply",
                description="Apply a configuration to resources across all managed clusters",
                requires_kubectl=True,
            )
        )

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "-f",
            "--filename",
            required=True,
            help="File, directory or URL containing the configuration to apply",
        )
        parser.add_argument(
            "-R",
            "--recursive",
            action="store_true",
            help="Process the directory used in -f recursively",
        )
        parser.add_argument(
            "--dry-run",
            choices=["none", "client", "server"],
            default="none",
            help="Must be 'none', 'server', or 'client'",
        )

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        kubectl_args = build_apply_args(
            args.filename,
            recursive=args.recursive,
            dry_run=args.dry_run,
            namespace=session.config.namespace,
        )
        run_pooled_kubectl(session, lambda handle: kubectl_args)
        return 0
