import asyncio
import sys

import pytest

from printprep.errors import CommandError, CommandTimeoutError
from printprep import shell
from printprep.shell import run_command


def test_captures_output():
    result = asyncio.run(run_command([sys.executable, "-c", "print('Tray 1')"]))
    assert result.returncode == 0
    assert result.stdout.strip() == "Tray 1"


def test_missing_executable_raises_command_error():
    with pytest.raises(CommandError, match="could not be started"):
        asyncio.run(run_command(["printprep-no-such-tool", "-p"]))


def test_non_zero_exit_carries_message():
    code = "import sys; sys.stderr.write('lp: no such printer'); sys.exit(3)"
    with pytest.raises(CommandError) as excinfo:
        asyncio.run(run_command([sys.executable, "-c", code]))
    assert excinfo.value.returncode == 3
    assert "no such printer" in str(excinfo.value)


def test_unchecked_exit_returns_result():
    result = asyncio.run(run_command([sys.executable, "-c", "import sys; sys.exit(2)"], check=False))
    assert result.returncode == 2


def test_timeout_is_distinct_error():
    with pytest.raises(CommandTimeoutError):
        asyncio.run(run_command([sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.5))


class _ExitedDuringTimeout:
    returncode = None

    async def communicate(self):
        await asyncio.sleep(10)

    def kill(self):
        raise ProcessLookupError()

    async def wait(self):
        self.returncode = 0
        return 0


def test_timeout_tolerates_child_already_gone(monkeypatch):
    async def spawn(*args, **kwargs):
        return _ExitedDuringTimeout()

    monkeypatch.setattr(shell.asyncio, "create_subprocess_exec", spawn)
    with pytest.raises(CommandTimeoutError):
        asyncio.run(run_command(["lp", "-d", "Office"], timeout=0.05))
