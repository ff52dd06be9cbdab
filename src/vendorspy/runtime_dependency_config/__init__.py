"""
Vendor bundle configuration management.

This package handles:
1. Deciding which vendor binaries must be downloaded for the target platforms
2. Detecting binaries that are already present or are placeholder scripts
3. Tracking download plans and dependency states
"""

from .config_manager import (
    DependencyConfigManager,
    DependencyState,
    DownloadPlan,
    DownloadStatus,
)

__all__ = ["DependencyConfigManager", "DependencyState", "DownloadPlan", "DownloadStatus"]
