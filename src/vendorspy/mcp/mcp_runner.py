"""
MCP (Model Context Protocol) runner for vendorspy diagnostics.

This module exposes the vendor runtime resolver through the Model Context
Protocol using the fastmcp framework, so an agent can inspect which bundled
runtimes a packaged build will use. It reads a `vendorspy.toml` file from the
workspace root:

1. If vendorspy.toml exists at startup, the resolver is created immediately
2. If it is missing, every tool checks for it again at call time
3. Tools answer with JSON strings carrying a "status" field
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from vendorspy.runtime_dependency_resolver import VendorRuntimeResolver
from vendorspy.vendorspy_config import VendorspyConfig
from vendorspy.vendorspy_exceptions import VendorspyException
from vendorspy.vendorspy_logger import VendorspyLogger

CONFIG_FILE_NAME = "vendorspy.toml"

VENDORSPY_TOML_SCHEMA = """
# vendorspy configuration

[vendor]
# Root of the installed application's resources
resources_path = "/Applications/App.app/Contents/Resources"

# true for an installed build, false for a development checkout
is_packaged = true

# Directory under resources_path holding unpacked files (optional)
# unpacked_dir_name = "app.asar.unpacked"

# Seconds a `--version` probe may take (optional)
# probe_timeout = 5.0

# Alternate dependency table (optional)
# dependencies_path = "vendor_dependencies.json"
"""


class MCPToolError(Exception):
    """Base exception for MCP tool errors."""

    pass


class VendorMCPRunner:
    """
    MCP runner that exposes vendor runtime diagnostics as MCP tools using fastmcp.

    Example usage:
        runner = VendorMCPRunner("/path/to/workspace")
        server = runner.create_mcp_server()
        server.run()
    """

    def __init__(self, workspace_root: Optional[str] = None, logger: Optional[VendorspyLogger] = None):
        """
        Initialize the runner, loading vendorspy.toml if it exists.

        Args:
            workspace_root: Directory searched for vendorspy.toml (default: cwd)
            logger: Logger shared with the resolver
        """
        self.workspace_root = workspace_root or os.getcwd()
        self.logger = logger or VendorspyLogger()
        self.config: Optional[VendorspyConfig] = None
        self.resolver: Optional[VendorRuntimeResolver] = None

        self._try_load_config()

    @property
    def config_path(self) -> str:
        return os.path.join(self.workspace_root, CONFIG_FILE_NAME)

    def _try_load_config(self) -> None:
        """
        Attempt to load vendorspy.toml, but don't fail if missing or invalid.
        """
        if not os.path.exists(self.config_path):
            return

        try:
            config = VendorspyConfig.from_toml(self.config_path)
            self.resolver = VendorRuntimeResolver(config, self.logger)
            self.config = config
            self.logger.log(
                f"Loaded vendorspy configuration for {self.resolver.platform_arch_key}",
                logging.INFO,
            )
        except VendorspyException as e:
            self.logger.log(
                f"Failed to load {CONFIG_FILE_NAME} from {self.config_path}: {e.message}", logging.ERROR
            )

    def _ensure_configured(self) -> bool:
        """
        Returns:
            True if a resolver is available, loading vendorspy.toml now if needed
        """
        if self.resolver is None:
            self._try_load_config()
        return self.resolver is not None

    def get_configuration_error_message(self) -> str:
        return (
            "vendorspy is not configured.\n\n"
            f"Create {self.config_path} with the following structure:\n"
            f"{VENDORSPY_TOML_SCHEMA}"
        )

    def _not_configured(self) -> str:
        return json.dumps({"status": "error", "message": self.get_configuration_error_message()})

    async def validation_report(self) -> str:
        if not self._ensure_configured():
            return self._not_configured()
        report = await self.resolver.get_validation_report()
        return json.dumps({"status": "success", "config": self.config.to_dict(), "report": report.model_dump()})

    def resolve_executable(self, name: str) -> str:
        if not self._ensure_configured():
            return self._not_configured()
        if self.resolver.dependencies.get_dependency(name) is None:
            known = ", ".join(self.resolver.dependencies.names())
            raise MCPToolError(f"Unknown dependency: {name}. Known dependencies: {known}")
        resolved = self.resolver.resolve_executable(name)
        return json.dumps({"status": "success", "executable": resolved.model_dump()})

    def enhanced_path(self) -> str:
        if not self._ensure_configured():
            return self._not_configured()
        return json.dumps({"status": "success", "path": self.resolver.build_enhanced_path()})

    def sdk_options(self) -> str:
        """
        Launch options, with the environment reduced to the entries the resolver
        adds or changes so inherited secrets are not echoed back.
        """
        if not self._ensure_configured():
            return self._not_configured()
        inherited = dict(os.environ)
        options = self.resolver.get_sdk_executable_options(inherited)
        changed: Dict[str, Any] = {
            key: value for key, value in options.env.items() if inherited.get(key) != value
        }
        return json.dumps({"status": "success", "executable": options.executable, "env": changed})

    def create_mcp_server(self) -> FastMCP:
        """
        Create and configure a FastMCP server with the vendor diagnostics tools.
        """
        server = FastMCP("vendorspy-mcp")
        self._register_tools(server)
        return server

    def _register_tools(self, server: FastMCP) -> None:

        @server.tool()
        async def vendor_validation_report() -> str:
            """Resolve every bundled runtime, probe it with --version and echo the active configuration."""
            return await self.validation_report()

        @server.tool()
        def vendor_resolve_executable(name: str) -> str:
            """Show what would be invoked for a dependency (e.g. 'bun', 'node', 'uv').

            Args:
                name: Dependency name from the vendor dependency table
            """
            return self.resolve_executable(name)

        @server.tool()
        def vendor_enhanced_path() -> str:
            """Show the PATH value child processes are launched with."""
            return self.enhanced_path()

        @server.tool()
        def vendor_sdk_options() -> str:
            """Show the executable and environment changes used to launch the agent SDK."""
            return self.sdk_options()


__all__ = [
    "VendorMCPRunner",
    "MCPToolError",
    "VENDORSPY_TOML_SCHEMA",
]
