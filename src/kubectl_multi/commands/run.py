"""run: start a pod on every execution cluster."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from kubectl_multi.commands.common import run_pooled_kubectl
from kubectl_multi.plugin import BaseCommand, CommandMetadata

if TYPE_CHECKING:
    from kubectl_multi.session import MultiClusterSession

INTERACTIVE_UNSUPPORTED = "kubectl multi does not support interactive commands (attach/tty) yet."


class RunCommand(BaseCommand):
    """Run an image as a pod on every cluster.

    Interactive sessions cannot be fanned out, so -i, -t and --attach are
    refused before any cluster is contacted.
    """

    def __init__(self) -> None:
        super().__init__(
            CommandMetadata(
                name="run",
                description="Run a particular image on all managed clusters",
                requires_kubectl=True,
                passthrough_args=True,
            )
        )

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("name", help="Pod name")
        parser.add_argument("--image", required=True, help="Container image to run")
        parser.add_argument("-i", "--stdin", action="store_true", help=argparse.SUPPRESS)
        parser.add_argument("-t", "--tty", action="store_true", help=argparse.SUPPRESS)
        parser.add_argument("--attach", action="store_true", help=argparse.SUPPRESS)

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        interactive = {"-i", "-t", "-it", "-ti", "--stdin", "--tty", "--attach"}
        if args.stdin or args.tty or args.attach or interactive & set(args.extra_args):
            session.sink.write_line(INTERACTIVE_UNSUPPORTED)
            return 0

        kubectl_args = ["run", args.name, f"--image={args.image}"]
        if session.config.namespace:
            kubectl_args.extend(["-n", session.config.namespace])
        kubectl_args.extend(args.extra_args)
        run_pooled_kubectl(session, lambda handle: kubectl_args)
        return 0
