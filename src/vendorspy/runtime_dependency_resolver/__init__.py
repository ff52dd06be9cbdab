"""
Vendor runtime resolution.

This package handles:
1. Deriving the platform-arch key of the host
2. Resolving bundled executables, with fallback to system commands
3. Building the search path and launch options for child processes
4. Probing executables for diagnostics
"""

from .resolver import SDK_EXECUTABLE_PRIORITY, VendorRuntimeResolver

__all__ = ["SDK_EXECUTABLE_PRIORITY", "VendorRuntimeResolver"]
