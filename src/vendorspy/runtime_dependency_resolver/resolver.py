"""
Vendor runtime resolver.

Locates the runtimes bundled with a packaged build, checks they are genuine
binaries, and prepares the search path and launch options for child
processes. Resolution never raises: every failure is logged and degrades to
the system command or to "unavailable".
"""

import asyncio
import logging
import os
import signal
from subprocess import DEVNULL, PIPE
from typing import Dict, Mapping, Optional, Tuple

from vendorspy.runtime_dependency_models import (
    DependencyReport,
    ResolvedExecutable,
    SDKExecutableOptions,
    ValidationReport,
    VendorDependenciesConfig,
    VendorDependency,
)
from vendorspy.vendorspy_config import VendorspyConfig
from vendorspy.vendorspy_logger import VendorspyLogger
from vendorspy.vendorspy_utils import FileUtils, PathUtils, PlatformUtils

# Runtimes the agent SDK can be launched with, most preferred first.
SDK_EXECUTABLE_PRIORITY = ("bun", "node")

VERSION_FLAG = "--version"

BIN_DIR_PLACEHOLDER = "{bin_dir}"


class VendorRuntimeResolver:
    """
    Resolves vendor dependencies for the current platform.

    The platform-arch key is computed once at construction. Nothing else is
    cached: every call re-checks the filesystem.
    """

    def __init__(
        self,
        config: VendorspyConfig,
        logger: VendorspyLogger,
        dependencies: Optional[VendorDependenciesConfig] = None,
    ):
        """
        Args:
            config: Resolver configuration, including the packaged flag and resources root
            logger: Logger receiving every diagnostic event
            dependencies: Dependency table; defaults to config.dependencies_path or the packaged table

        Raises:
            VendorspyException: If the dependency table cannot be loaded
        """
        self.config = config
        self.logger = logger

        if dependencies is None:
            if config.dependencies_path:
                dependencies = VendorDependenciesConfig.from_json_file(config.dependencies_path)
            else:
                dependencies = VendorDependenciesConfig.load_default()
        self.dependencies = dependencies

        self.os_name = PlatformUtils.get_os_name(config.platform)
        self.platform_arch_key = PlatformUtils.get_platform_arch_key(config.platform, config.arch)
        self.path_separator = PlatformUtils.get_path_separator(self.os_name)

        if config.is_packaged and not config.resources_path:
            self.logger.log(
                "[Packaging] resources_path is not set; bundle paths resolve against the working directory",
                logging.WARNING,
            )

        for name, gaps in self.dependencies.find_missing_platforms().items():
            self.logger.log(
                f"[Packaging] {name} has no bundle path for: {', '.join(gaps)}",
                logging.WARNING,
            )

    def get_bundle_path(self, dependency: VendorDependency) -> Optional[str]:
        """
        Absolute path the dependency is expected at inside the unpacked bundle,
        or None if the table has no entry for the current platform-arch key.
        """
        relative_path = dependency.get_relative_path(self.platform_arch_key)
        if relative_path is None:
            return None
        return os.path.join(
            self.config.resources_path,
            self.config.unpacked_dir_name,
            *relative_path.split("/"),
        )

    def build_enhanced_path(self, environ: Optional[Mapping[str, str]] = None) -> str:
        """
        Build the PATH value for child processes, with bundled runtime directories
        ahead of the inherited search path.

        In development mode the inherited PATH is returned unchanged.
        """
        if environ is None:
            environ = os.environ
        base_path = environ.get("PATH", "")

        if not self.config.is_packaged:
            return base_path

        bundle_dirs = []
        for dependency in self.dependencies.dependencies.values():
            exec_path = self.get_bundle_path(dependency)
            if exec_path is None:
                continue

            if os.path.isfile(exec_path):
                bin_dir = os.path.dirname(exec_path)
                bundle_dirs.append(bin_dir)
                self.logger.log(f"[Packaging] Added {dependency.name} to PATH: {bin_dir}", logging.DEBUG)
            else:
                self.logger.log(f"[Packaging] {dependency.name} not found at: {exec_path}", logging.WARNING)

        entries = PathUtils.dedupe(bundle_dirs + base_path.split(self.path_separator))
        return self.path_separator.join(entries)

    def resolve_executable(self, name: str) -> ResolvedExecutable:
        """
        Decide what to invoke for dependency {name}.

        Returns:
            ResolvedExecutable whose path is the bundled binary, the bare command
            name (development mode or fallback), or None when unavailable
        """
        dependency = self.dependencies.get_dependency(name)
        if dependency is None:
            self.logger.log(f"[Packaging] Unknown executable: {name}", logging.ERROR)
            return ResolvedExecutable(name=name)

        if not self.config.is_packaged:
            return self._system_command(dependency)

        exec_path = self.get_bundle_path(dependency)
        if exec_path is None:
            self.logger.log(
                f"[Packaging] No path configured for {name} on {self.platform_arch_key}",
                logging.ERROR,
            )
            return ResolvedExecutable(name=name)

        if not os.path.isfile(exec_path):
            self.logger.log(f"[Packaging] {name} not found at: {exec_path}", logging.WARNING)
            if dependency.system_fallback:
                self.logger.log(f"[Packaging] Falling back to system {dependency.executable}", logging.INFO)
                return self._system_command(dependency)
            return ResolvedExecutable(name=name)

        try:
            if FileUtils.is_placeholder_file(exec_path, self.config.min_binary_size):
                self.logger.log(
                    f"[Packaging] Vendor {name} is a script, not a binary. "
                    f"Falling back to system {dependency.executable}.",
                    logging.WARNING,
                )
                return self._system_command(dependency, is_placeholder=True)
        except OSError as e:
            self.logger.log(f"[Packaging] Failed to validate vendor {name}: {e}", logging.WARNING)
            return self._system_command(dependency)

        self.logger.log(f"[Packaging] Found {name} at: {exec_path}", logging.DEBUG)
        return ResolvedExecutable(name=name, path=exec_path, available=True)

    def get_executable_path(self, name: str) -> Optional[str]:
        """Shorthand for resolve_executable(name).path."""
        return self.resolve_executable(name).path

    @staticmethod
    def _system_command(dependency: VendorDependency, is_placeholder: bool = False) -> ResolvedExecutable:
        return ResolvedExecutable(
            name=dependency.name,
            path=dependency.executable,
            available=True,
            is_placeholder=is_placeholder,
            is_fallback=True,
        )

    async def validate_executable(self, executable: str, env: Optional[Mapping[str, str]] = None) -> bool:
        """
        Check that {executable} runs: `<executable> --version` must exit with status 0
        within config.probe_timeout seconds. Output is discarded.
        """
        ok, _ = await self._probe(executable, env)
        return ok

    async def _probe(
        self, executable: str, env: Optional[Mapping[str, str]] = None, capture_version: bool = False
    ) -> Tuple[bool, Optional[str]]:
        """
        Run `<executable> --version`.

        Returns:
            Tuple of (exited with status 0 in time, first output line if captured)
        """
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                VERSION_FLAG,
                stdin=DEVNULL,
                stdout=PIPE if capture_version else DEVNULL,
                stderr=DEVNULL,
                env=dict(env) if env is not None else None,
                # own process group, so a timeout can take down anything the probe forked
                start_new_session=os.name == "posix",
            )
        except (OSError, ValueError) as e:
            self.logger.log(f"[Validation] Could not start {executable}: {e}", logging.DEBUG)
            return False, None

        timed_out = False
        stdout = None
        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.config.probe_timeout)
        except asyncio.TimeoutError:
            timed_out = True
        finally:
            if timed_out or process.returncode is None:
                _kill_quietly(process)
                await self._reap(process, executable)

        if timed_out:
            self.logger.log(
                f"[Validation] {executable} {VERSION_FLAG} did not finish within {self.config.probe_timeout}s",
                logging.WARNING,
            )
            return False, None

        if process.returncode != 0:
            return False, None

        version = None
        if stdout:
            lines = [line.strip() for line in stdout.decode("utf-8", errors="replace").splitlines()]
            version = next((line for line in lines if line), None)
        return True, version

    async def _reap(self, process: asyncio.subprocess.Process, executable: str) -> None:
        try:
            await asyncio.wait_for(process.wait(), timeout=self.config.probe_timeout)
        except asyncio.TimeoutError:
            self.logger.log(f"[Validation] {executable} did not exit after being killed", logging.WARNING)

    def validate_packaged_dependencies(self) -> Dict[str, bool]:
        """
        Report which dependencies resolve to something invocable. No process is spawned.
        """
        results = {}
        for name in self.dependencies.names():
            path = self.get_executable_path(name)
            results[name] = path is not None
            if path:
                self.logger.log(f"[Packaging] {name} is available at: {path}", logging.INFO)
            else:
                self.logger.log(f"[Packaging] {name} is not available", logging.WARNING)
        return results

    async def get_validation_report(self, environ: Optional[Mapping[str, str]] = None) -> ValidationReport:
        """
        Resolve every dependency and probe the result with --version.

        Probes run with the enhanced PATH, the same search path a launched
        process would see.
        """
        environ = dict(os.environ if environ is None else environ)
        probe_env = {**environ, "PATH": self.build_enhanced_path(environ)}

        report = ValidationReport(
            platform=self.os_name,
            platform_arch_key=self.platform_arch_key,
            is_packaged=self.config.is_packaged,
        )

        for name in self.dependencies.names():
            resolved = self.resolve_executable(name)
            if resolved.path is None:
                report.dependencies[name] = DependencyReport()
                self.logger.log(f"[Validation] {name} not found", logging.WARNING)
                continue

            ok, version = await self._probe(resolved.path, probe_env, capture_version=True)
            report.dependencies[name] = DependencyReport(path=resolved.path, available=ok, version=version)
            if ok:
                self.logger.log(f"[Validation] {name} validated successfully", logging.INFO)
            else:
                self.logger.log(f"[Validation] {name} found but not executable", logging.WARNING)

        return report

    def get_sdk_executable_options(self, environ: Optional[Mapping[str, str]] = None) -> SDKExecutableOptions:
        """
        Assemble the executable and environment for the agent SDK launcher.

        The executable is the first resolvable runtime in SDK_EXECUTABLE_PRIORITY.
        Any failure leaves the executable unset so the launcher uses its own discovery.
        """
        environ = dict(os.environ if environ is None else environ)
        try:
            resolved = {name: self.resolve_executable(name) for name in self.dependencies.names()}

            executable = None
            for name in SDK_EXECUTABLE_PRIORITY:
                candidate = resolved.get(name)
                if candidate is not None and candidate.available:
                    executable = name
                    self.logger.log(f"[Packaging] Using {name} as SDK executable", logging.INFO)
                    break

            env = dict(environ)
            env["PATH"] = self.build_enhanced_path(environ)
            for name, candidate in resolved.items():
                if candidate.available:
                    env.update(self._env_hints(self.dependencies.get_dependency(name), candidate))

            return SDKExecutableOptions(executable=executable, env=env)
        except Exception as e:
            self.logger.log(f"[Packaging] Failed to build SDK executable options: {e}", logging.ERROR)
            return SDKExecutableOptions(env=environ)

    @staticmethod
    def _env_hints(dependency: VendorDependency, resolved: ResolvedExecutable) -> Dict[str, str]:
        """
        Expand a dependency's environment hints. Hints referring to {bin_dir} only
        apply when the dependency resolved to a bundled binary.
        """
        hints = {}
        for key, template in dependency.env.items():
            if BIN_DIR_PLACEHOLDER in template:
                if resolved.is_fallback or not resolved.path:
                    continue
                template = template.replace(BIN_DIR_PLACEHOLDER, os.path.dirname(resolved.path))
            hints[key] = template
        return hints


def _kill_quietly(process: asyncio.subprocess.Process) -> None:
    """
    SIGKILL the probe's process group on POSIX, the process itself elsewhere.
    Killing something that already exited is a no-op.
    """
    try:
        if os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except (ProcessLookupError, PermissionError):
        pass
