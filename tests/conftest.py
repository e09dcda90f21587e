import os
import signal
import sys
from pathlib import Path
from typing import Iterable

import pytest

from filldisk.controller import FillController, Registry
from filldisk.fill_types import MIB, CommandResult, FilesystemStat

LOG_PATTERN = "filldisk.run.*.log"


class FakeChannel:
    """Records every call instead of touching the host.

    ``run_results`` maps a program name to a result (or a list consumed in
    order); anything not listed succeeds.  Successful ``fallocate``/``dd`` runs
    create their target file so artifact bookkeeping can be asserted.
    """

    def __init__(self):
        self.calls = []
        self.available = {"fallocate", "dd"}
        self.run_results = {}
        self.spawn_result = CommandResult(success=True, pid=4242)
        self.pids = {}
        self.unkillable = set()

    def is_command_available(self, name):
        return name in self.available

    def run(self, argv):
        self.calls.append(("run", list(argv)))
        res = self.run_results.get(argv[0], CommandResult(success=True))
        if isinstance(res, list):
            res = res.pop(0)
        if res.success:
            self._touch_target(argv)
        return res

    def spawn_detached(self, argv, log_path=None):
        self.calls.append(("spawn", list(argv), log_path))
        return self.spawn_result

    def find_pids(self, marker, scope=None):
        self.calls.append(("find", marker, scope))
        return list(self.pids.get(marker, []))

    def kill_pids(self, pids):
        self.calls.append(("kill", list(pids)))
        return [pid for pid in pids if pid in self.unkillable]

    def wait_pids(self, pids, timeout=3.0):
        self.calls.append(("wait", list(pids)))

    def calls_of(self, kind):
        return [c for c in self.calls if c[0] == kind]

    @staticmethod
    def _touch_target(argv):
        target = None
        if argv[0] == "fallocate":
            target = argv[-1]
        elif argv[0] == "dd":
            target = next(a[3:] for a in argv if a.startswith("of="))
        if target:
            Path(target).touch()


def make_stat_reader(total_mb: float, available_mb: float):
    stat = FilesystemStat(
        total_bytes=int(total_mb * MIB),
        available_bytes=int(available_mb * MIB),
        block_size=4096,
    )
    calls = []

    def reader(directory):
        calls.append(directory)
        return stat

    reader.calls = calls
    return reader


def _no_stat(directory):  # noqa: D401 – helper
    raise AssertionError(f"filesystem stat read for {directory}")


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def stat_reader_factory():
    """``factory(total_mb, available_mb)`` → stat reader recording its calls."""
    return make_stat_reader


@pytest.fixture
def retained_dirs():
    return []


@pytest.fixture
def controller(fake_channel, retained_dirs):
    """A FillController wired to the fake channel and a stat reader that must not be used."""
    registry = Registry(
        channel=fake_channel, stat_reader=_no_stat, retain=retained_dirs.append
    )
    return FillController(registry=registry)


@pytest.fixture
def fill_dir(tmp_path):
    d = tmp_path / "target"
    d.mkdir()
    return d


def _find_latest_log(dirs: Iterable[Path]) -> Path | None:
    """Return the most recently modified log file among *dirs* (recursive)."""
    latest: Path | None = None
    for base in dirs:
        if not base.exists():
            continue
        for path in base.rglob(LOG_PATTERN):
            if latest is None or path.stat().st_mtime > latest.stat().st_mtime:
                latest = path
    return latest


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item, call):  # noqa: D401 – pytest hook
    outcome = yield
    rep = outcome.get_result()

    # Only act after the *call* phase and when the test has failed.
    if rep.when != "call" or rep.passed:
        return

    candidate_dirs: list[Path] = []
    fixture_val = item.funcargs.get("tmp_path") if hasattr(item, "funcargs") else None
    if isinstance(fixture_val, Path):
        candidate_dirs.append(fixture_val)
    if os.environ.get("FILLDISK_DATA_DIR"):
        candidate_dirs.append(Path(os.environ["FILLDISK_DATA_DIR"]))

    latest_log = _find_latest_log(candidate_dirs)
    if latest_log is None:
        return

    try:
        contents = latest_log.read_text(encoding="utf-8")
    except OSError as exc:  # pragma: no cover – best-effort
        contents = f"<error reading log file {latest_log}: {exc}>"

    rep.sections.append(("filldisk-log", contents))


@pytest.fixture(autouse=True)
def _enforce_timeout(request):
    """Fail tests that run longer than the allowed time.

    Default timeout is 30 seconds unless a test is marked with
    ``@pytest.mark.timeout(N)`` specifying a custom limit.
    """

    marker = request.node.get_closest_marker("timeout")
    timeout = int(marker.args[0]) if marker and marker.args else 30

    if timeout <= 0 or sys.platform.startswith("win"):
        yield
        return

    def _alarm_handler(signum, frame):  # noqa: D401 – signal handler
        pytest.fail(f"Test timed out after {timeout} seconds", pytrace=False)

    previous = signal.signal(signal.SIGALRM, _alarm_handler)  # type: ignore[arg-type]
    signal.alarm(timeout)

    try:
        yield
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, previous)  # type: ignore[arg-type]
