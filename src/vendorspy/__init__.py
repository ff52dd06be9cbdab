"""
vendorspy locates the runtimes bundled with a packaged application, falls
back to system installs when they are missing or placeholders, and prepares
the search path and launch options for child processes.
"""

from vendorspy.runtime_dependency_resolver import SDK_EXECUTABLE_PRIORITY, VendorRuntimeResolver
from vendorspy.vendorspy_config import VendorspyConfig
from vendorspy.vendorspy_exceptions import VendorspyException
from vendorspy.vendorspy_logger import VendorspyLogger
from vendorspy.vendorspy_utils import PlatformUtils

__all__ = [
    "SDK_EXECUTABLE_PRIORITY",
    "PlatformUtils",
    "VendorRuntimeResolver",
    "VendorspyConfig",
    "VendorspyException",
    "VendorspyLogger",
]
