"""
Vendor dependency downloader.

This package handles:
1. Downloading vendor archives from their release URLs
2. Extracting archives and placing executables at their bundle paths
3. Verifying downloads
4. Updating dependency states
"""

from .downloader import DependencyDownloader, prepare_vendor_bundle

__all__ = ["DependencyDownloader", "prepare_vendor_bundle"]
