"""
This file contains various utility functions like platform detection,
search-path handling and archive download/extraction.
"""

import logging
import os
import platform
import shutil
import tarfile
from enum import Enum
from typing import Iterable, List, Optional

import requests

from vendorspy.vendorspy_exceptions import VendorspyException
from vendorspy.vendorspy_logger import VendorspyLogger


class PlatformId(str, Enum):
    """
    Platform-arch keys the product ships vendor binaries for
    """

    DARWIN_ARM64 = "darwin-arm64"
    DARWIN_X64 = "darwin-x64"
    LINUX_X64 = "linux-x64"
    WIN32_X64 = "win32-x64"


SUPPORTED_PLATFORM_KEYS = tuple(p.value for p in PlatformId)

_OS_MAP = {
    "darwin": "darwin",
    "macos": "darwin",
    "linux": "linux",
    "windows": "win32",
    "win32": "win32",
    "cygwin": "win32",
}

_ARCH_MAP = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv8l": "arm64",
}


class PlatformUtils:
    """
    This class provides utilities for platform detection and identification.
    """

    @staticmethod
    def get_os_name(system: Optional[str] = None) -> str:
        """
        Normalizes an OS identifier ("Darwin", "Windows", "win32", ...) to darwin, linux or win32.
        Unknown systems are returned lowercased as-is.
        """
        if system is None:
            system = platform.system()
        system = system.lower()
        return _OS_MAP.get(system, system)

    @staticmethod
    def get_arch_name(machine: Optional[str] = None) -> str:
        """
        Normalizes a CPU architecture identifier to arm64 or x64.
        Unknown architectures are returned lowercased as-is.
        """
        if machine is None:
            machine = platform.machine()
        machine = machine.lower()
        return _ARCH_MAP.get(machine, machine)

    @staticmethod
    def get_platform_arch_key(system: Optional[str] = None, machine: Optional[str] = None) -> str:
        """
        Returns the key used to index the vendor dependency table, e.g. "darwin-arm64".

        Only darwin distinguishes architectures. linux and win32 builds are x64-only,
        so those hosts always map to "<os>-x64" whatever the reported architecture.
        Unrecognized systems produce the raw "<os>-<arch>" key, which matches no entry.
        """
        os_name = PlatformUtils.get_os_name(system)
        arch = PlatformUtils.get_arch_name(machine)

        if os_name == "darwin" and arch in ("arm64", "x64"):
            return f"darwin-{arch}"
        if os_name in ("linux", "win32"):
            return f"{os_name}-x64"
        return f"{os_name}-{arch}"

    @staticmethod
    def get_path_separator(os_name: str) -> str:
        return ";" if os_name == "win32" else ":"


class PathUtils:
    """
    Utilities for search-path strings
    """

    @staticmethod
    def dedupe(entries: Iterable[str]) -> List[str]:
        """
        Drops blank entries and repeated directories, keeping the first occurrence.
        """
        seen = set()
        out = []
        for entry in entries:
            if not entry.strip() or entry in seen:
                continue
            seen.add(entry)
            out.append(entry)
        return out


class FileUtils:
    """
    Utility functions for files and archives
    """

    # formats understood by shutil.unpack_archive
    ARCHIVE_FORMATS = {
        "zip": "zip",
        "tar": "tar",
        "tar.gz": "gztar",
        "tgz": "gztar",
        "tar.xz": "xztar",
    }

    @staticmethod
    def looks_like_placeholder(content: bytes) -> bool:
        """
        Heuristic for mock vendor binaries: a shell script (shebang first line) that echoes.

        A genuine tiny wrapper script that echoes would also match.
        """
        return content.startswith(b"#!") and b"echo" in content

    @staticmethod
    def is_placeholder_file(path: str, min_size: int) -> bool:
        """
        True if the file at {path} is smaller than {min_size} bytes and looks like a placeholder script.
        Files of plausible binary size are never read.

        Raises:
            OSError: If the file cannot be inspected
        """
        if os.stat(path).st_size >= min_size:
            return False
        with open(path, "rb") as f:
            return FileUtils.looks_like_placeholder(f.read(min_size))

    @staticmethod
    def download_file(logger: VendorspyLogger, url: str, target_path: str, timeout: float = 60) -> None:
        """
        Downloads the file from the given URL to the given {target_path}
        """
        os.makedirs(os.path.dirname(target_path), exist_ok=True)
        try:
            response = requests.get(url, stream=True, timeout=timeout)
            if response.status_code != 200:
                logger.log(f"Error downloading file '{url}': {response.status_code}", logging.ERROR)
                raise VendorspyException(f"Error downloading file {url}: HTTP {response.status_code}")
            with open(target_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=1024 * 1024):
                    if chunk:
                        f.write(chunk)
        except requests.RequestException as exc:
            logger.log(f"Error downloading file '{url}': {exc}", logging.ERROR)
            raise VendorspyException(f"Error downloading file {url}") from exc

    @staticmethod
    def extract_archive(logger: VendorspyLogger, archive_path: str, target_path: str, archive_type: str) -> None:
        """
        Extracts the archive at {archive_path} into the directory {target_path}
        """
        fmt = FileUtils.ARCHIVE_FORMATS.get(archive_type)
        if fmt is None:
            raise VendorspyException(f"Unsupported archive type: {archive_type}")

        os.makedirs(target_path, exist_ok=True)
        logger.log(f"Extracting {archive_path} to {target_path}", logging.INFO)
        try:
            if fmt == "zip" or not hasattr(tarfile, "data_filter"):
                shutil.unpack_archive(archive_path, target_path, fmt)
            else:
                shutil.unpack_archive(archive_path, target_path, fmt, filter="data")
        except OSError as exc:
            logger.log(f"Error extracting archive '{archive_path}': {exc}", logging.ERROR)
            raise VendorspyException(f"Error extracting archive {archive_path}") from exc

    @staticmethod
    def download_and_extract_archive(
        logger: VendorspyLogger, url: str, target_path: str, archive_type: str
    ) -> None:
        """
        Downloads the archive from the given URL having format {archive_type} and extracts it
        into {target_path}. The downloaded archive is removed afterwards.
        """
        file_name = url.rstrip("/").split("/")[-1] or "archive"
        archive_path = os.path.join(target_path, file_name)
        try:
            FileUtils.download_file(logger, url, archive_path)
            FileUtils.extract_archive(logger, archive_path, target_path, archive_type)
        finally:
            if os.path.exists(archive_path):
                os.remove(archive_path)
