"""
Dependency configuration manager.

Decides which vendor binaries have to be downloaded into a staging
directory before the application is packaged.
"""

import pathlib
from typing import Dict, Iterable, List, Optional, Tuple

from vendorspy.runtime_dependency_models import Dependency, VendorDependenciesConfig, VendorDependency
from vendorspy.vendorspy_config import DEFAULT_MIN_BINARY_SIZE
from vendorspy.vendorspy_utils import FileUtils, PlatformUtils


class DownloadStatus:
    """Enumeration of download statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class DownloadPlan:
    """
    A plan to download a vendor binary for one platform-arch key.

    The archive is extracted into extract_path (the dependency's
    vendor/<name>-<key> directory) and the executable ends up at
    destination_path.
    """

    def __init__(
            self,
            dependency_key: str,
            dependency: VendorDependency,
            source: Dependency,
            platform_arch_key: str,
            destination_path: str,
            extract_path: str,
            executable_subpath: str,
            replace_placeholder: bool = False,
            status: str = DownloadStatus.PENDING,
    ):
        """
        Initialize a download plan.

        Args:
            dependency_key: Unique key, "<name>.<platform-arch key>"
            dependency: The VendorDependency being prepared
            source: Archive to download
            platform_arch_key: Target platform of the binary
            destination_path: Absolute path the executable must end up at
            extract_path: Directory the archive is extracted into
            executable_subpath: Executable path relative to extract_path
            replace_placeholder: A placeholder script currently sits at destination_path
            status: Current download status
        """
        self.dependency_key = dependency_key
        self.dependency = dependency
        self.source = source
        self.platform_arch_key = platform_arch_key
        self.destination_path = destination_path
        self.extract_path = extract_path
        self.executable_subpath = executable_subpath
        self.replace_placeholder = replace_placeholder
        self.status = status
        self.error_message: Optional[str] = None

    @property
    def url(self) -> str:
        return self.source.url

    @property
    def archive_type(self) -> str:
        return self.source.archive_type

    def __repr__(self) -> str:
        return (
            f"DownloadPlan(key={self.dependency_key}, "
            f"status={self.status}, url={self.url})"
        )


class DependencyState:
    """
    Current state of a vendor binary in the staging directory.
    """

    def __init__(
            self,
            dependency_key: str,
            download_status: str,
            downloaded_path: Optional[str] = None,
            error_message: Optional[str] = None,
    ):
        self.dependency_key = dependency_key
        self.download_status = download_status
        self.downloaded_path = downloaded_path
        self.error_message = error_message

    def is_downloaded(self) -> bool:
        """Check if the binary is present, downloaded now or earlier."""
        return self.download_status in (DownloadStatus.COMPLETED, DownloadStatus.SKIPPED)

    def __repr__(self) -> str:
        return (
            f"DependencyState(key={self.dependency_key}, "
            f"status={self.download_status}, path={self.downloaded_path})"
        )


def split_bundle_path(relative_path: str) -> Tuple[List[str], List[str]]:
    """
    Split a table path into (platform directory parts, executable parts).

    "vendor/node-linux-x64/bin/node" -> (["vendor", "node-linux-x64"], ["bin", "node"])
    Paths outside the vendor/<dep>-<key>/ layout split at the file name.
    """
    parts = [p for p in relative_path.split("/") if p]
    if len(parts) >= 3 and parts[0] == "vendor":
        return parts[:2], parts[2:]
    return parts[:-1], parts[-1:]


class DependencyConfigManager:
    """
    Plans the vendor binaries to download into a staging directory.

    A binary already present and genuine is skipped; a placeholder script at the
    destination is planned for replacement.
    """

    def __init__(
        self,
        dependencies_config: VendorDependenciesConfig,
        staging_root: str,
        min_binary_size: int = DEFAULT_MIN_BINARY_SIZE,
    ):
        """
        Initialize the dependency config manager.

        Args:
            dependencies_config: The vendor dependency table
            staging_root: Directory that is later copied into the unpacked bundle
            min_binary_size: Files smaller than this are checked for placeholder content
        """
        self.dependencies = dependencies_config
        self.staging_root = staging_root
        self.min_binary_size = min_binary_size
        self.download_plans: Dict[str, List[DownloadPlan]] = {}
        self.dependency_states: Dict[str, DependencyState] = {}

    def create_download_plan(self, platform_keys: Optional[Iterable[str]] = None) -> None:
        """
        Create download plans for the given platform-arch keys (default: the host's).
        """
        if platform_keys is None:
            platform_keys = [PlatformUtils.get_platform_arch_key()]
        platform_keys = list(platform_keys)

        self.download_plans = {}
        for name, dep in self.dependencies.dependencies.items():
            plans = []
            for key in platform_keys:
                plan = self._create_plan_for_dependency(dep, key)
                if plan:
                    plans.append(plan)

            if plans:
                self.download_plans[name] = plans

    def _create_plan_for_dependency(self, dep: VendorDependency, platform_arch_key: str) -> Optional[DownloadPlan]:
        """
        Returns:
            DownloadPlan, or None if the table has no download or path for the key
        """
        source = dep.get_download(platform_arch_key)
        relative_path = dep.get_relative_path(platform_arch_key)
        if source is None or relative_path is None:
            return None

        dir_parts, exe_parts = split_bundle_path(relative_path)
        extract_path = pathlib.Path(self.staging_root, *dir_parts)
        destination_path = extract_path.joinpath(*exe_parts)

        status = DownloadStatus.PENDING
        replace_placeholder = False
        if destination_path.is_file():
            try:
                replace_placeholder = FileUtils.is_placeholder_file(str(destination_path), self.min_binary_size)
            except OSError:
                replace_placeholder = True
            if not replace_placeholder:
                status = DownloadStatus.SKIPPED

        return DownloadPlan(
            dependency_key=f"{dep.name}.{platform_arch_key}",
            dependency=dep,
            source=source,
            platform_arch_key=platform_arch_key,
            destination_path=str(destination_path),
            extract_path=str(extract_path),
            executable_subpath="/".join(exe_parts),
            replace_placeholder=replace_placeholder,
            status=status,
        )

    def get_download_plans(self) -> Dict[str, List[DownloadPlan]]:
        return self.download_plans

    def _plans_with_status(self, status: str) -> List[DownloadPlan]:
        out = []
        for plans in self.download_plans.values():
            out.extend(p for p in plans if p.status == status)
        return out

    def get_pending_downloads(self) -> List[DownloadPlan]:
        """
        Returns:
            List of DownloadPlan objects with PENDING status
        """
        return self._plans_with_status(DownloadStatus.PENDING)

    def get_skipped_downloads(self) -> List[DownloadPlan]:
        """
        Returns:
            List of DownloadPlan objects whose binary was already present
        """
        return self._plans_with_status(DownloadStatus.SKIPPED)

    def mark_download_completed(self, plan: DownloadPlan, success: bool = True) -> None:
        """
        Mark a download plan as completed or failed and record the dependency state.
        """
        plan.status = DownloadStatus.COMPLETED if success else DownloadStatus.FAILED

        state = DependencyState(
            dependency_key=plan.dependency_key,
            download_status=plan.status,
            downloaded_path=plan.destination_path if success else None,
            error_message=None if success else (plan.error_message or "Download failed"),
        )
        self.dependency_states[plan.dependency_key] = state

    def mark_present(self, plan: DownloadPlan) -> None:
        """Record a skipped plan's existing binary as the dependency state."""
        self.dependency_states[plan.dependency_key] = DependencyState(
            dependency_key=plan.dependency_key,
            download_status=DownloadStatus.SKIPPED,
            downloaded_path=plan.destination_path,
        )

    def get_dependency_states(self) -> Dict[str, DependencyState]:
        return self.dependency_states

    def get_dependency_state(self, dep_key: str) -> Optional[DependencyState]:
        return self.dependency_states.get(dep_key)
