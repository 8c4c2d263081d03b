"""delete: kubectl delete on every execution cluster."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from kubectl_multi.commands.common import namespace_args, run_pooled_kubectl
from kubectl_multi.plugin import BaseCommand, CommandMetadata
from kubectl_multi.utils.errors import PreconditionError

if TYPE_CHECKING:
    from kubectl_multi.session import MultiClusterSession


class DeleteCommand(BaseCommand):
    """Delete resources by type and name, selector or file on every cluster."""

    def __init__(self) -> None:
        super().__init__(
            CommandMetadata(
                name="delete",
                description="Delete resources across all managed clusters",
                requires_kubectl=True,
            )
        )

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("resource_type", metavar="TYPE", nargs="?", help="Resource type")
        parser.add_argument("names", nargs="*", metavar="NAME", help="Resource names")
        parser.add_argument("-l", "--selector", default=None, help="Label selector")
        parser.add_argument("-f", "--filename", default=None, help="File with resources to delete")
        parser.add_argument(
            "--all", action="store_true", dest="delete_all", help="Delete all resources of the type"
        )

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        if not args.filename and not args.resource_type:
            raise PreconditionError("delete requires TYPE [NAME...] or -f FILE")
        if args.resource_type and not (args.names or args.selector or args.delete_all):
            raise PreconditionError("delete requires a resource name, --selector or --all")

        kubectl_args = ["delete"]
        if args.filename:
            kubectl_args.extend(["-f", args.filename])
        if args.resource_type:
            kubectl_args.append(args.resource_type)
            kubectl_args.extend(args.names)
        if args.selector:
            kubectl_args.extend(["-l", args.selector])
        if args.delete_all:
            kubectl_args.append("--all")
        kubectl_args.extend(namespace_args(session.config))

        run_pooled_kubectl(session, lambda handle: kubectl_args)
        return 0
