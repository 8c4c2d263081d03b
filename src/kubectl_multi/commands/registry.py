"""Registry of the built-in commands."""

from __future__ import annotations

from kubectl_multi.plugin import BaseCommand


def get_core_commands() -> list[BaseCommand]:
    """Instantiate every built-in command plugin, in help-listing order."""
    from kubectl_multi.commands.apply import ApplyCommand
    from kubectl_multi.commands.clusters import ClustersCommand
    from kubectl_multi.commands.delete import DeleteCommand
    from kubectl_multi.commands.describe import DescribeCommand
    from kubectl_multi.commands.get import GetCommand
    from kubectl_multi.commands.logs import LogsCommand
    from kubectl_multi.commands.rollout import RolloutCommand
    from kubectl_multi.commands.run import RunCommand

    return [
        GetCommand(),
        DescribeCommand(),
        ApplyCommand(),
        DeleteCommand(),
        LogsCommand(),
        RolloutCommand(),
        RunCommand(),
        ClustersCommand(),
    ]
