import os

import pytest

from vendorspy.runtime_dependency_models import VendorDependenciesConfig
from vendorspy.runtime_dependency_resolver import VendorRuntimeResolver
from vendorspy.vendorspy_config import VendorspyConfig
from vendorspy.vendorspy_logger import VendorspyLogger

GENUINE_BINARY = b"\x7fELF\x02\x01\x01" + b"\x00" * 4096


@pytest.fixture
def logger():
    return VendorspyLogger()


@pytest.fixture
def dependencies():
    """The dependency table shipped with the package."""
    return VendorDependenciesConfig.load_default()


@pytest.fixture
def resources_path(tmp_path):
    return str(tmp_path / "resources")


@pytest.fixture
def make_resolver(resources_path, logger, dependencies):
    """Build a resolver for a given platform without touching the host's."""

    def _make(platform="darwin", arch="arm64", is_packaged=True, table=None, **kwargs):
        config = VendorspyConfig(
            resources_path=resources_path,
            is_packaged=is_packaged,
            platform=platform,
            arch=arch,
            **kwargs,
        )
        return VendorRuntimeResolver(config, logger, table or dependencies)

    return _make


@pytest.fixture
def install_vendor_file():
    """Write a file at the bundle path a resolver expects for a dependency."""

    def _install(resolver, name, content=GENUINE_BINARY, mode=0o755):
        path = resolver.get_bundle_path(resolver.dependencies.get_dependency(name))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
        os.chmod(path, mode)
        return path

    return _install
