"""
Pydantic data models for vendor_dependencies.json.

The table maps every bundled runtime to its relative location inside the
unpacked application bundle, per platform-arch key, together with the
archives the bundle is built from. Models are frozen: the table is loaded
once and injected into resolvers, never mutated.
"""

import json
import os
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from vendorspy.vendorspy_exceptions import VendorspyException
from vendorspy.vendorspy_utils import SUPPORTED_PLATFORM_KEYS

DEFAULT_DEPENDENCIES_FILE = str(
    PurePath(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "vendor_dependencies.json")
)


class Dependency(BaseModel):
    """
    A downloadable archive a vendor binary is extracted from.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    url: str = Field(..., description="URL to download from")
    archive_type: str = Field(
        ..., alias="archiveType", description="Archive type: zip, tar.gz, tar.xz, etc.")
    description: Optional[str] = Field(None, alias="_description")


class VendorDependency(BaseModel):
    """
    A bundled runtime.

    paths maps a platform-arch key (e.g. "darwin-arm64") to the executable's path
    relative to the unpacked bundle root. system_fallback marks runtimes commonly
    installed on the host, which may be used by bare command name when the
    bundled copy is missing.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    name: str
    executable: str
    system_fallback: bool = Field(False, alias="systemFallback")
    env: Dict[str, str] = Field(
        default_factory=dict,
        description="Environment hints for launched processes; {bin_dir} expands to the bundled binary's directory",
    )
    paths: Dict[str, str] = Field(default_factory=dict)
    downloads: Dict[str, Dependency] = Field(default_factory=dict)
    description: Optional[str] = Field(None, alias="_description")

    def get_relative_path(self, platform_arch_key: str) -> Optional[str]:
        return self.paths.get(platform_arch_key)

    def get_download(self, platform_arch_key: str) -> Optional[Dependency]:
        return self.downloads.get(platform_arch_key)


class VendorDependenciesConfig(BaseModel):
    """
    Complete vendor dependency table.

    Structure:
    {
      "_description": "...",
      "dependencies": {
        "bun": {
          "executable": "bun",
          "systemFallback": true,
          "env": {"BUN_INSTALL": "{bin_dir}"},
          "paths": {"darwin-arm64": "vendor/bun-darwin-arm64/bun", ...},
          "downloads": {"darwin-arm64": {"url": "...", "archiveType": "zip"}, ...}
        },
        ...
      }
    }

    Declaration order of "dependencies" is significant: it is the order bundle
    directories are placed on the search path.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    description: Optional[str] = Field(None, alias="_description")
    dependencies: Dict[str, VendorDependency] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _name_dependencies(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("dependencies"), dict):
            named = {}
            for key, value in data["dependencies"].items():
                if isinstance(value, dict) and "name" not in value:
                    value = {**value, "name": key}
                named[key] = value
            data = {**data, "dependencies": named}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VendorDependenciesConfig":
        """
        Raises:
            VendorspyException: If the table does not match the schema
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise VendorspyException(f"Invalid vendor dependency table: {e}") from e

    @classmethod
    def from_json_file(cls, path: str) -> "VendorDependenciesConfig":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise VendorspyException(f"Failed to load vendor dependency table {path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def load_default(cls) -> "VendorDependenciesConfig":
        """Load the table shipped with the package."""
        return cls.from_json_file(DEFAULT_DEPENDENCIES_FILE)

    def get_dependency(self, name: str) -> Optional[VendorDependency]:
        return self.dependencies.get(name)

    def names(self) -> List[str]:
        return list(self.dependencies.keys())

    def find_missing_platforms(
        self, platform_keys: Iterable[str] = SUPPORTED_PLATFORM_KEYS
    ) -> Dict[str, List[str]]:
        """
        Find shipped platform-arch keys a dependency has no bundle path for.

        Returns:
            Dictionary mapping dependency names to their missing keys; complete
            dependencies are omitted
        """
        platform_keys = list(platform_keys)
        missing = {}
        for name, dep in self.dependencies.items():
            gaps = [key for key in platform_keys if key not in dep.paths]
            if gaps:
                missing[name] = gaps
        return missing

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the JSON layout (camelCase aliases)."""
        return self.model_dump(by_alias=True, exclude_none=True)
