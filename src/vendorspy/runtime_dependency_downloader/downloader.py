"""
Dependency downloader implementation.

Fetches vendor archives, extracts them and places each executable at the
path the dependency table declares for it.
"""

import logging
import os
import pathlib
import shutil
from typing import Dict, Iterable, Optional

from vendorspy.runtime_dependency_config.config_manager import (
    DependencyConfigManager,
    DownloadPlan,
    DownloadStatus,
)
from vendorspy.runtime_dependency_models import VendorDependenciesConfig
from vendorspy.vendorspy_exceptions import VendorspyException
from vendorspy.vendorspy_logger import VendorspyLogger
from vendorspy.vendorspy_utils import FileUtils

# archive metadata directories that are never the executable's home
IGNORED_DIRS = ("__MACOSX",)


class DependencyDownloader:
    """
    Downloads and extracts vendor binaries.

    Executes download plans, manages progress, and updates dependency states.
    """

    def __init__(
        self,
        config_manager: DependencyConfigManager,
        logger: VendorspyLogger,
    ):
        """
        Initialize the dependency downloader.

        Args:
            config_manager: The DependencyConfigManager with download plans
            logger: Logger for progress and error messages
        """
        self.config_manager = config_manager
        self.logger = logger

    def download_all_pending(self) -> bool:
        """
        Download all pending dependencies. Binaries already present only get
        their permissions fixed.

        Returns:
            True if all downloads succeeded, False if any failed
        """
        for plan in self.config_manager.get_skipped_downloads():
            self.logger.log(
                f"{plan.dependency_key} already exists at {plan.destination_path}, skipping download",
                logging.INFO,
            )
            self._make_executable(plan)
            self.config_manager.mark_present(plan)

        pending = self.config_manager.get_pending_downloads()

        if not pending:
            self.logger.log(
                "No pending downloads",
                logging.INFO,
            )
            return True

        self.logger.log(
            f"Starting download of {len(pending)} dependencies",
            logging.INFO,
        )

        all_succeeded = True
        for plan in pending:
            success = self.download_dependency(plan)
            if not success:
                all_succeeded = False

        return all_succeeded

    def download_dependency(self, plan: DownloadPlan) -> bool:
        """
        Download a single dependency.

        Args:
            plan: The download plan to execute

        Returns:
            True if download succeeded, False otherwise
        """
        try:
            self.logger.log(
                f"Downloading {plan.dependency_key} from {plan.url}",
                logging.INFO,
            )

            plan.status = DownloadStatus.IN_PROGRESS

            destination = pathlib.Path(plan.destination_path)
            if plan.replace_placeholder and destination.exists():
                backup = destination.with_name(destination.name + ".backup")
                os.replace(destination, backup)
                self.logger.log(f"Moved placeholder {destination} to {backup}", logging.INFO)

            FileUtils.download_and_extract_archive(
                self.logger,
                plan.url,
                plan.extract_path,
                plan.archive_type,
            )

            located = self._locate_executable(pathlib.Path(plan.extract_path), plan.executable_subpath)
            if located is None:
                raise VendorspyException(
                    f"Executable {plan.executable_subpath} not found in {plan.extract_path}"
                )

            if located != destination:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(located, destination)
                self.logger.log(f"Copied {located} to {destination}", logging.DEBUG)

            self._make_executable(plan)

            if not self._verify_download(plan):
                raise VendorspyException(
                    f"Download verification failed for {plan.dependency_key}"
                )

            self.config_manager.mark_download_completed(plan, success=True)

            self.logger.log(
                f"Successfully installed {plan.dependency_key} at {plan.destination_path}",
                logging.INFO,
            )

            return True

        except Exception as e:
            error_msg = f"Failed to download {plan.dependency_key}: {str(e)}"
            self.logger.log(error_msg, logging.ERROR)
            plan.error_message = error_msg
            self.config_manager.mark_download_completed(plan, success=False)
            return False

    @staticmethod
    def _locate_executable(extract_path: pathlib.Path, executable_subpath: str) -> Optional[pathlib.Path]:
        """
        Find the executable after extraction: directly under extract_path, or inside the
        top-level directory most release archives wrap their contents in.
        """
        subpath = pathlib.PurePosixPath(executable_subpath)
        candidates = [extract_path.joinpath(*subpath.parts)]

        if extract_path.is_dir():
            for child in sorted(extract_path.iterdir()):
                if not child.is_dir() or child.name in IGNORED_DIRS:
                    continue
                candidates.append(child.joinpath(*subpath.parts))
                candidates.append(child / subpath.name)

        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None

    def _make_executable(self, plan: DownloadPlan) -> None:
        if plan.platform_arch_key.startswith("win32"):
            return
        try:
            os.chmod(plan.destination_path, 0o755)
        except OSError as e:
            self.logger.log(
                f"Could not set executable permissions for {plan.destination_path}: {e}",
                logging.WARNING,
            )

    def _verify_download(self, plan: DownloadPlan) -> bool:
        """
        Verify that the executable is in place and is not a placeholder.

        Args:
            plan: The download plan to verify

        Returns:
            True if verification passed, False otherwise
        """
        dest_path = pathlib.Path(plan.destination_path)

        if not dest_path.is_file():
            self.logger.log(
                f"Executable does not exist: {dest_path}",
                logging.WARNING,
            )
            return False

        if dest_path.stat().st_size == 0:
            self.logger.log(
                f"Downloaded file is empty: {dest_path}",
                logging.WARNING,
            )
            return False

        if FileUtils.is_placeholder_file(str(dest_path), self.config_manager.min_binary_size):
            self.logger.log(
                f"Downloaded file is a placeholder script: {dest_path}",
                logging.WARNING,
            )
            return False

        return True

    def get_downloaded_dependencies(self) -> dict:
        """
        Returns:
            Dictionary mapping dependency keys to states of binaries now in place
        """
        states = self.config_manager.get_dependency_states()
        return {key: state for key, state in states.items() if state.is_downloaded()}

    def get_failed_dependencies(self) -> dict:
        """
        Returns:
            Dictionary mapping dependency keys to states of failed downloads
        """
        states = self.config_manager.get_dependency_states()
        return {
            key: state
            for key, state in states.items()
            if state.download_status == DownloadStatus.FAILED
        }

    def get_download_summary(self) -> Dict[str, int]:
        """
        Get a summary of download results.

        Returns:
            Dictionary with counts of completed, skipped, failed, and pending downloads
        """
        states = self.config_manager.get_dependency_states()
        pending = self.config_manager.get_pending_downloads()

        completed = sum(1 for state in states.values() if state.download_status == DownloadStatus.COMPLETED)
        skipped = sum(1 for state in states.values() if state.download_status == DownloadStatus.SKIPPED)
        failed = sum(1 for state in states.values() if state.download_status == DownloadStatus.FAILED)

        return {
            "completed": completed,
            "skipped": skipped,
            "failed": failed,
            "pending": len(pending),
            "total": completed + skipped + failed + len(pending),
        }


def prepare_vendor_bundle(
    staging_root: str,
    platform_keys: Optional[Iterable[str]] = None,
    dependencies: Optional[VendorDependenciesConfig] = None,
    logger: Optional[VendorspyLogger] = None,
) -> Dict[str, int]:
    """
    Download every vendor binary for {platform_keys} (default: the host) into {staging_root}.

    Returns:
        The download summary
    """
    if dependencies is None:
        dependencies = VendorDependenciesConfig.load_default()
    if logger is None:
        logger = VendorspyLogger()

    config_manager = DependencyConfigManager(dependencies, staging_root)
    config_manager.create_download_plan(platform_keys)

    downloader = DependencyDownloader(config_manager, logger)
    if not downloader.download_all_pending():
        logger.log(
            "Some vendor dependencies failed to download. Check logs for details.",
            logging.ERROR,
        )

    summary = downloader.get_download_summary()
    logger.log(
        f"Download summary: {summary['completed']} completed, {summary['skipped']} skipped, "
        f"{summary['failed']} failed, {summary['pending']} pending",
        logging.INFO,
    )
    return summary
