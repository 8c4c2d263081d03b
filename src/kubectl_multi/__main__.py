"""Entry point for kubectl-multi."""

import argparse
import logging
import sys
from typing import Any

from pydantic import ValidationError

from kubectl_multi import __version__
from kubectl_multi.config import LogLevel, MultiClusterConfig
from kubectl_multi.plugin_manager import PluginManager
from kubectl_multi.session import MultiClusterSession
from kubectl_multi.utils.errors import MultiClusterError


def setup_logging(level: LogLevel) -> None:
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=level.value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def add_global_arguments(parser: argparse.ArgumentParser, suppress: bool = False) -> None:
    """Add the flags shared by every command.

    Subcommand parsers add them with suppressed defaults so a flag given
    after the subcommand overrides, and an absent one does not clobber, the
    value given before it.
    """

    def default(value: Any) -> Any:
        return argparse.SUPPRESS if suppress else value

    parser.add_argument(
        "--kubeconfig",
        default=default(None),
        help="Path to kubeconfig file (default: $KUBECONFIG or ~/.kube/config)",
    )
    parser.add_argument(
        "--remote-context",
        default=default(None),
        help="Context of the inventory cluster holding ManagedClusters (default: its1)",
    )
    parser.add_argument(
        "-n",
        "--namespace",
        default=default(None),
        help="Target namespace (default: default)",
    )
    parser.add_argument(
        "-A",
        "--all-namespaces",
        action="store_true",
        default=default(False),
        help="Operate across all namespaces",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=default(None),
        help="Clusters handled at once by apply, delete, rollout and run (default: 5)",
    )
    parser.add_argument(
        "--cluster-timeout",
        type=float,
        default=default(None),
        help="Per-cluster deadline in seconds (default: none)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=default(None),
        help="Logging level (default: WARNING)",
    )


class CommandParser(argparse.ArgumentParser):
    """Subcommand parser that also accepts the global flags."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        add_global_arguments(self, suppress=True)


def build_parser(plugin_manager: PluginManager) -> argparse.ArgumentParser:
    """Build the argument parser with every registered command."""
    parser = argparse.ArgumentParser(
        prog="kubectl-multi",
        description="Run kubectl operations across all KubeStellar managed clusters",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    add_global_arguments(parser)

    subparsers = parser.add_subparsers(
        dest="command_name",
        metavar="COMMAND",
        required=True,
        parser_class=CommandParser,
    )
    plugin_manager.register_all_commands(subparsers)
    return parser


def build_config(args: argparse.Namespace) -> MultiClusterConfig:
    """Build config from args, falling back to environment/defaults."""
    config_kwargs: dict[str, Any] = {}

    if args.kubeconfig:
        config_kwargs["kubeconfig_path"] = args.kubeconfig

    if args.remote_context is not None:
        config_kwargs["remote_context"] = args.remote_context

    if args.namespace:
        config_kwargs["namespace"] = args.namespace

    if args.all_namespaces:
        config_kwargs["all_namespaces"] = True

    if args.max_concurrency is not None:
        config_kwargs["max_concurrency"] = args.max_concurrency

    if args.cluster_timeout is not None:
        config_kwargs["cluster_timeout"] = args.cluster_timeout

    if args.log_level:
        config_kwargs["log_level"] = LogLevel(args.log_level)

    return MultiClusterConfig(**config_kwargs)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    plugin_manager = PluginManager()
    plugin_manager.load_core_plugins()
    plugin_manager.load_entrypoint_plugins()

    parser = build_parser(plugin_manager)
    args, extra = parser.parse_known_args(argv)
    command = args.command

    metadata = getattr(command, "metadata", None)
    if extra and not (metadata and metadata.passthrough_args):
        parser.error(f"unrecognized arguments: {' '.join(extra)}")
    args.extra_args = extra

    try:
        config = build_config(args)
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)
    logger.debug(f"kubectl-multi v{__version__}: {args.command_name}")

    session = MultiClusterSession(config)
    try:
        ready, message = plugin_manager.check_prerequisites(command, session)
        if not ready:
            print(f"Error: {message}", file=sys.stderr)
            return 1
        return command.run(args, session)
    except MultiClusterError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
