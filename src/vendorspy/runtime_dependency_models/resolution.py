"""
Pydantic data models for resolver results: resolved executables, the
diagnostic validation report and the options handed to the SDK launcher.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ResolvedExecutable(BaseModel):
    """
    Outcome of resolving one vendor dependency.

    path is an absolute bundle path, the bare command name or None when the
    dependency is unavailable. is_fallback is set whenever path is the bare
    command, to be looked up on the search path.
    """

    name: str
    path: Optional[str] = None
    available: bool = False
    is_placeholder: bool = False
    is_fallback: bool = False


class DependencyReport(BaseModel):
    path: Optional[str] = None
    available: bool = False
    version: Optional[str] = None


class ValidationReport(BaseModel):
    """Diagnostic snapshot of every declared dependency. Never persisted."""

    platform: str
    platform_arch_key: str
    is_packaged: bool
    dependencies: Dict[str, DependencyReport] = Field(default_factory=dict)


class SDKExecutableOptions(BaseModel):
    """
    Launch options for the downstream agent runtime.

    executable is None when no runtime resolved; the launcher then falls back
    to its own discovery.
    """

    executable: Optional[str] = None
    env: Dict[str, str] = Field(default_factory=dict)
