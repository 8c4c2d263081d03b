"""rollout: manage deployment rollouts on every execution cluster."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from kubectl_multi.commands.common import namespace_args, run_pooled_kubectl
from kubectl_multi.plugin import BaseCommand, CommandMetadata

if TYPE_CHECKING:
    from kubectl_multi.session import MultiClusterSession

ROLLOUT_SUBCOMMANDS = ("history", "pause", "restart", "resume", "status", "undo")


class RolloutCommand(BaseCommand):
    def __init__(self) -> None:
        super().__init__(
            CommandMetadata(
                name="rollout",
                description="Manage the rollout of resources across all managed clusters",
                requires_kubectl=True,
                passthrough_args=True,
            )
        )

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("subcommand", choices=ROLLOUT_SUBCOMMANDS, help="Rollout action")
        parser.add_argument(
            "rollout_args",
            nargs="*",
            metavar="ARGS",
            help="Resources to act on, e.g. deployment/nginx; other flags pass through",
        )

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        kubectl_args = ["rollout", args.subcommand, *args.rollout_args, *args.extra_args]
        kubectl_args.extend(namespace_args(session.config))
        run_pooled_kubectl(session, lambda handle: kubectl_args)
        return 0
