"""
Tests for the vendor dependency table models.
"""

import json

import pytest
from pydantic import ValidationError

from vendorspy.runtime_dependency_models import (
    DEFAULT_DEPENDENCIES_FILE,
    VendorDependenciesConfig,
)
from vendorspy.vendorspy_exceptions import VendorspyException
from vendorspy.vendorspy_utils import SUPPORTED_PLATFORM_KEYS


class TestVendorDependenciesConfig:
    """Tests for VendorDependenciesConfig model."""

    @pytest.fixture
    def default_table_data(self):
        """Raw vendor_dependencies.json."""
        with open(DEFAULT_DEPENDENCIES_FILE) as f:
            return json.load(f)

    def test_load_default_table(self, dependencies):
        assert dependencies.description is not None
        assert dependencies.names() == ["bun", "uv", "node"]

    def test_dependency_names_come_from_keys(self, dependencies):
        for name in dependencies.names():
            assert dependencies.get_dependency(name).name == name

    def test_every_dependency_covers_shipped_platforms(self, dependencies):
        assert dependencies.find_missing_platforms() == {}
        for name in dependencies.names():
            dep = dependencies.get_dependency(name)
            assert set(dep.paths) == set(SUPPORTED_PLATFORM_KEYS)
            assert set(dep.downloads) == set(SUPPORTED_PLATFORM_KEYS)

    def test_bundle_paths_follow_vendor_layout(self, dependencies):
        for name in dependencies.names():
            dep = dependencies.get_dependency(name)
            for key, path in dep.paths.items():
                assert path.startswith(f"vendor/{name}-{key}/")

    def test_node_paths(self, dependencies):
        node = dependencies.get_dependency("node")
        assert node.get_relative_path("linux-x64") == "vendor/node-linux-x64/bin/node"
        assert node.get_relative_path("win32-x64") == "vendor/node-win32-x64/node.exe"
        assert node.get_relative_path("freebsd-x64") is None

    def test_system_fallback_flags(self, dependencies):
        assert dependencies.get_dependency("bun").system_fallback is True
        assert dependencies.get_dependency("node").system_fallback is True
        assert dependencies.get_dependency("uv").system_fallback is False

    def test_env_hints(self, dependencies):
        assert dependencies.get_dependency("bun").env == {"BUN_INSTALL": "{bin_dir}"}
        assert dependencies.get_dependency("uv").env == {"UV_PYTHON_PREFERENCE": "only-system"}
        assert dependencies.get_dependency("node").env == {}

    def test_download_sources(self, dependencies):
        node_linux = dependencies.get_dependency("node").get_download("linux-x64")
        assert node_linux.url.endswith(".tar.xz")
        assert node_linux.archive_type == "tar.xz"
        assert dependencies.get_dependency("uv").get_download("darwin-arm64").archive_type == "tar.gz"

    def test_unknown_dependency(self, dependencies):
        assert dependencies.get_dependency("deno") is None

    def test_models_are_frozen(self, dependencies):
        with pytest.raises(ValidationError):
            dependencies.get_dependency("bun").executable = "deno"

    def test_to_dict_can_be_reloaded(self, dependencies):
        converted = dependencies.to_dict()
        assert "_description" in converted
        assert converted["dependencies"]["bun"]["systemFallback"] is True

        reloaded = VendorDependenciesConfig.from_dict(converted)
        assert reloaded == dependencies

    def test_missing_executable_is_rejected(self, default_table_data):
        del default_table_data["dependencies"]["uv"]["executable"]
        with pytest.raises(VendorspyException):
            VendorDependenciesConfig.from_dict(default_table_data)

    def test_unreadable_table(self, tmp_path):
        path = tmp_path / "table.json"
        path.write_text("{not json")
        with pytest.raises(VendorspyException):
            VendorDependenciesConfig.from_json_file(str(path))

    def test_find_missing_platforms(self):
        table = VendorDependenciesConfig.from_dict(
            {
                "dependencies": {
                    "bun": {
                        "executable": "bun",
                        "paths": {"darwin-arm64": "vendor/bun-darwin-arm64/bun"},
                    }
                }
            }
        )
        missing = table.find_missing_platforms()
        assert missing == {"bun": ["darwin-x64", "linux-x64", "win32-x64"]}
