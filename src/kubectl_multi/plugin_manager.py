"""Plugin manager using pluggy for kubectl-multi.

Handles registration of the built-in commands and discovery of external
commands from entry points.
"""

from __future__ import annotations

import argparse
import logging
from typing import TYPE_CHECKING, Any

import pluggy

from kubectl_multi.hooks import PROJECT_NAME, KubectlMultiHookSpec

if TYPE_CHECKING:
    from kubectl_multi.plugin import CommandMetadata
    from kubectl_multi.session import MultiClusterSession

logger = logging.getLogger(__name__)

# Entry point group name for external command discovery
COMMAND_ENTRY_POINT_GROUP = "kubectl_multi.commands"


class PluginManager:
    """Manages command plugin registration and lookup."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(KubectlMultiHookSpec)
        self._registered_plugins: dict[str, Any] = {}

    @property
    def hook(self) -> Any:
        """Get the pluggy hook caller for invoking hooks."""
        return self._pm.hook

    @property
    def registered_plugins(self) -> dict[str, Any]:
        """Get all registered plugins by name."""
        return self._registered_plugins

    def register_plugin(self, plugin: Any, name: str | None = None) -> str:
        """Register a command plugin instance.

        Args:
            plugin: Plugin instance implementing hook methods.
            name: Optional name for the plugin. Defaults to the command
                  name from its metadata.

        Returns:
            The name used to register the plugin.
        """
        if name is None:
            if hasattr(plugin, "kubectl_multi_get_command_metadata"):
                name = plugin.kubectl_multi_get_command_metadata().name
            else:
                name = type(plugin).__name__

        self._pm.register(plugin, name=name)
        self._registered_plugins[name] = plugin
        logger.debug(f"Registered command: {name}")
        return name

    def unregister_plugin(self, name: str) -> None:
        if name in self._registered_plugins:
            plugin = self._registered_plugins.pop(name)
            self._pm.unregister(plugin)
            logger.debug(f"Unregistered command: {name}")

    def load_core_plugins(self) -> int:
        """Register the built-in commands.

        Returns:
            Number of commands registered.
        """
        from kubectl_multi.commands.registry import get_core_commands

        commands = get_core_commands()
        for command in commands:
            self.register_plugin(command)
        logger.debug(f"Loaded {len(commands)} core commands")
        return len(commands)

    def load_entrypoint_plugins(self) -> int:
        """Discover and load external commands from entry points.

        Returns:
            Number of plugins loaded.
        """
        count = self._pm.load_setuptools_entrypoints(COMMAND_ENTRY_POINT_GROUP)

        for plugin in self._pm.get_plugins():
            name = self._pm.get_name(plugin)
            if name and name not in self._registered_plugins:
                self._registered_plugins[name] = plugin
                logger.info(f"Loaded external command from entry point: {name}")

        logger.debug(f"Loaded {count} external commands from entry points")
        return count

    def get_all_metadata(self) -> list[CommandMetadata]:
        results = self.hook.kubectl_multi_get_command_metadata()
        return [meta for meta in results if meta is not None]

    def register_all_commands(
        self, subparsers: argparse._SubParsersAction  # type: ignore[type-arg]
    ) -> None:
        """Call the registration hook on every plugin."""
        self.hook.kubectl_multi_register_command(subparsers=subparsers)

    def check_prerequisites(self, plugin: Any, session: MultiClusterSession) -> tuple[bool, str]:
        """Check one command's prerequisites.

        Plugins without a check are assumed ready.
        """
        if not hasattr(plugin, "kubectl_multi_check_prerequisites"):
            return True, "No prerequisite check defined"
        try:
            return plugin.kubectl_multi_check_prerequisites(session=session)
        except Exception as e:
            logger.warning(f"Prerequisite check failed with error: {e}")
            return False, f"Prerequisite check error: {e}"
