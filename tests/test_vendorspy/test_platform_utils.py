"""
Tests for platform-arch key derivation and the small path/file helpers.
"""

import pytest

from vendorspy.vendorspy_utils import (
    SUPPORTED_PLATFORM_KEYS,
    FileUtils,
    PathUtils,
    PlatformUtils,
)


class TestPlatformArchKey:
    @pytest.mark.parametrize(
        "system,machine,expected",
        [
            ("Darwin", "arm64", "darwin-arm64"),
            ("darwin", "x86_64", "darwin-x64"),
            ("Linux", "x86_64", "linux-x64"),
            ("Windows", "AMD64", "win32-x64"),
            ("win32", "x64", "win32-x64"),
        ],
    )
    def test_supported_hosts(self, system, machine, expected):
        assert PlatformUtils.get_platform_arch_key(system, machine) == expected

    @pytest.mark.parametrize("system", ["Linux", "Windows"])
    def test_linux_and_windows_are_always_x64(self, system):
        """Non-darwin builds are x64-only; the host architecture is ignored."""
        assert PlatformUtils.get_platform_arch_key(system, "aarch64").endswith("-x64")

    def test_unknown_os_yields_raw_key(self):
        key = PlatformUtils.get_platform_arch_key("FreeBSD", "riscv64")
        assert key == "freebsd-riscv64"
        assert key not in SUPPORTED_PLATFORM_KEYS

    def test_host_key_is_computed(self):
        assert PlatformUtils.get_platform_arch_key()

    def test_path_separator(self):
        assert PlatformUtils.get_path_separator("win32") == ";"
        assert PlatformUtils.get_path_separator("darwin") == ":"
        assert PlatformUtils.get_path_separator("linux") == ":"


class TestPathUtils:
    def test_dedupe_keeps_first_occurrence(self):
        assert PathUtils.dedupe(["/a", "/b", "/a", "/c", "/b"]) == ["/a", "/b", "/c"]

    def test_dedupe_drops_blank_entries(self):
        assert PathUtils.dedupe(["", "/a", "  ", "/b"]) == ["/a", "/b"]


class TestPlaceholderHeuristic:
    def test_shebang_with_echo(self):
        assert FileUtils.looks_like_placeholder(b'#!/bin/bash\necho "x"')

    def test_shebang_without_echo(self):
        assert not FileUtils.looks_like_placeholder(b"#!/bin/sh\nexec /opt/bun/bun \"$@\"\n")

    def test_echo_without_shebang(self):
        assert not FileUtils.looks_like_placeholder(b'echo "x"')

    def test_binary_content(self):
        assert not FileUtils.looks_like_placeholder(b"\x7fELF\x02\x01\x01\x00")

    def test_large_file_is_not_read(self, tmp_path, monkeypatch):
        path = tmp_path / "bun"
        path.write_bytes(b'#!/bin/bash\necho "x"\n' + b"#" * 2000)

        def fail_open(*args, **kwargs):
            raise AssertionError("file content must not be read")

        monkeypatch.setattr("builtins.open", fail_open)
        assert not FileUtils.is_placeholder_file(str(path), 1000)

    def test_small_stub_file(self, tmp_path):
        path = tmp_path / "bun"
        path.write_bytes(b'#!/bin/bash\necho "x"')
        assert FileUtils.is_placeholder_file(str(path), 1000)
