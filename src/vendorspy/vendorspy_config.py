"""
Configuration parameters for vendorspy.
"""

import dataclasses
import inspect
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from vendorspy.vendorspy_exceptions import VendorspyException

DEFAULT_UNPACKED_DIR_NAME = "app.asar.unpacked"
# real runtimes are several megabytes; anything below this gets its content sniffed
DEFAULT_MIN_BINARY_SIZE = 1000
DEFAULT_PROBE_TIMEOUT = 5.0

# accepted value types per key; bool is never accepted where a number is expected
_VALUE_TYPES = {
    "resources_path": (str,),
    "is_packaged": (bool,),
    "unpacked_dir_name": (str,),
    "min_binary_size": (int,),
    "probe_timeout": (int, float),
    "platform": (str, type(None)),
    "arch": (str, type(None)),
    "dependencies_path": (str, type(None)),
}


@dataclass(frozen=True)
class VendorspyConfig:
    """
    Configuration parameters

    resources_path: root of the installed application's resources
    is_packaged: True for an installed build, False for a development checkout
    """

    resources_path: str = ""
    is_packaged: bool = False
    unpacked_dir_name: str = DEFAULT_UNPACKED_DIR_NAME
    min_binary_size: int = DEFAULT_MIN_BINARY_SIZE
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    platform: Optional[str] = None
    arch: Optional[str] = None
    dependencies_path: Optional[str] = None

    @classmethod
    def from_dict(cls, env: Dict[str, Any]) -> "VendorspyConfig":
        """
        Create a VendorspyConfig instance from a dictionary

        Raises:
            VendorspyException: If the dictionary contains unknown keys or values of the wrong type
        """
        known = inspect.signature(cls).parameters
        unknown = [k for k in env if k not in known]
        if unknown:
            raise VendorspyException(f"Unknown vendorspy configuration keys: {', '.join(sorted(unknown))}")

        for key, value in env.items():
            expected = _VALUE_TYPES[key]
            if not isinstance(value, expected) or (isinstance(value, bool) and bool not in expected):
                names = " or ".join("null" if t is type(None) else t.__name__ for t in expected)
                raise VendorspyException(f"'{key}' must be {names}, got {type(value).__name__}: {value!r}")

        if "probe_timeout" in env:
            env = {**env, "probe_timeout": float(env["probe_timeout"])}
        return cls(**env)

    @classmethod
    def from_toml(cls, path: str) -> "VendorspyConfig":
        """
        Load the [vendor] table of a vendorspy.toml file.

        Relative resources_path and dependencies_path values are taken relative to the
        directory holding the file.

        Raises:
            VendorspyException: If the file cannot be read or parsed
        """
        try:
            with open(path, "rb") as f:
                toml_dict = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise VendorspyException(f"Failed to load {path}: {e}") from e

        section = toml_dict.get("vendor", {})
        if not isinstance(section, dict):
            raise VendorspyException(f"'vendor' in {path} must be a table")

        base_dir = os.path.dirname(os.path.abspath(path))
        for key in ("resources_path", "dependencies_path"):
            value = section.get(key)
            if isinstance(value, str) and value and not os.path.isabs(value):
                section[key] = os.path.join(base_dir, value)

        return cls.from_dict(section)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)
