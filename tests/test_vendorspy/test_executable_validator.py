"""
Tests for the --version liveness probe.
"""

import asyncio
import os
import sys
import time

import pytest

from vendorspy.runtime_dependency_resolver.resolver import _kill_quietly

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts")


def _write_script(path, body):
    path.write_text("#!/bin/sh\n" + body)
    os.chmod(path, 0o755)
    return str(path)


@pytest.mark.asyncio
async def test_running_executable_passes(make_resolver):
    resolver = make_resolver(is_packaged=False)
    assert await resolver.validate_executable(sys.executable) is True


@pytest.mark.asyncio
async def test_missing_command_fails_fast(make_resolver):
    resolver = make_resolver(is_packaged=False, probe_timeout=2.0)

    start = time.monotonic()
    ok = await resolver.validate_executable("vendorspy-no-such-command-7f3a")

    assert ok is False
    assert time.monotonic() - start < 2.0


@posix_only
@pytest.mark.asyncio
async def test_non_zero_exit_fails(make_resolver, tmp_path):
    resolver = make_resolver(is_packaged=False)
    script = _write_script(tmp_path / "broken", "exit 3\n")
    assert await resolver.validate_executable(script) is False


@posix_only
@pytest.mark.asyncio
async def test_hanging_command_is_killed_at_timeout(make_resolver, tmp_path):
    timeout = 0.5
    resolver = make_resolver(is_packaged=False, probe_timeout=timeout)
    pid_file = tmp_path / "pid"
    script = _write_script(tmp_path / "hangs", f'echo $$ > "{pid_file}"\nexec sleep 30\n')

    start = time.monotonic()
    ok = await resolver.validate_executable(script)
    elapsed = time.monotonic() - start

    assert ok is False
    assert elapsed >= timeout * 0.9
    assert elapsed < timeout + 3

    pid = int(pid_file.read_text().strip())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


async def _wait_until_gone(pid, timeout=2.0):
    """True once {pid} no longer runs. Zombies left for init to reap count as gone."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return True
        try:
            with open(f"/proc/{pid}/stat") as f:
                if f.read().rsplit(")", 1)[1].split()[0] == "Z":
                    return True
        except OSError:
            pass
        await asyncio.sleep(0.05)
    return False


@posix_only
@pytest.mark.asyncio
async def test_timeout_kills_forked_children(make_resolver, tmp_path):
    timeout = 0.5
    resolver = make_resolver(is_packaged=False, probe_timeout=timeout)
    pid_file = tmp_path / "pid"
    script = _write_script(tmp_path / "forks", f'sleep 7 &\necho $! > "{pid_file}"\nwait\n')

    start = time.monotonic()
    ok = await resolver.validate_executable(script)

    assert ok is False
    assert time.monotonic() - start < timeout + 3

    background_pid = int(pid_file.read_text().strip())
    assert await _wait_until_gone(background_pid)


@posix_only
@pytest.mark.asyncio
async def test_probe_env_controls_lookup(make_resolver, tmp_path):
    resolver = make_resolver(is_packaged=False)
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    _write_script(bin_dir / "fakebun", "echo 1.1.38\n")

    assert await resolver.validate_executable("fakebun", env={"PATH": str(bin_dir)}) is True
    assert await resolver.validate_executable("fakebun", env={"PATH": str(tmp_path)}) is False


@pytest.mark.asyncio
async def test_kill_after_exit_is_harmless():
    process = await asyncio.create_subprocess_exec(sys.executable, "-c", "pass")
    await process.wait()

    _kill_quietly(process)
    _kill_quietly(process)

    assert process.returncode == 0
