"""
Vendor dependency models.

This package provides Pydantic data models for the vendor dependency table
(vendor_dependencies.json) and for the results produced by the resolver.
"""

from .vendor_dependencies import (
    DEFAULT_DEPENDENCIES_FILE,
    Dependency,
    VendorDependency,
    VendorDependenciesConfig,
)
from .resolution import (
    DependencyReport,
    ResolvedExecutable,
    SDKExecutableOptions,
    ValidationReport,
)

__all__ = [
    # Vendor dependency table
    "DEFAULT_DEPENDENCIES_FILE",
    "Dependency",
    "VendorDependency",
    "VendorDependenciesConfig",
    # Resolution results
    "DependencyReport",
    "ResolvedExecutable",
    "SDKExecutableOptions",
    "ValidationReport",
]
