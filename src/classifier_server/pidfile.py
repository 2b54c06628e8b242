"""PID file recording the running server process and its endpoint."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


class PidFileError(RuntimeError):
    """Raised when another server already owns the PID file."""


@dataclass(frozen=True)
class ServerRecord:
    """Contents of the PID file."""

    pid: int
    url: str | None = None


def read_record(path: Path) -> ServerRecord | None:
    """Return the record stored in ``path``, or None when absent or unreadable.

    Plain integer PID files are accepted as well.
    """

    try:
        contents = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    if not contents:
        return None
    if contents.isdigit():
        return ServerRecord(pid=int(contents))
    try:
        payload = json.loads(contents)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    pid = payload.get("pid")
    if isinstance(pid, bool) or not isinstance(pid, int):
        return None
    url = payload.get("url")
    return ServerRecord(pid=pid, url=url if isinstance(url, str) else None)


def pid_alive(pid: int) -> bool:
    """Return True if a process with ``pid`` appears to be running."""

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class PidFile:
    """Context manager that writes the server record and removes it on exit."""

    def __init__(self, path: Path, *, url: str | None = None) -> None:
        self.path = path.expanduser()
        self.url = url
        self.pid: int | None = None

    def __enter__(self) -> PidFile:
        self.create()
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.remove()

    def create(self, pid: int | None = None) -> ServerRecord:
        self.ensure_can_start(self.path)
        record = ServerRecord(pid=pid or os.getpid(), url=self.url)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"pid": record.pid, "url": record.url}),
            encoding="utf-8",
        )
        self.pid = record.pid
        return record

    def remove(self) -> None:
        """Delete the file if it is ours or points at a dead process."""

        record = read_record(self.path)
        if record is None:
            self.path.unlink(missing_ok=True)
            return
        if record.pid == self.pid or not pid_alive(record.pid):
            self.path.unlink(missing_ok=True)

    @staticmethod
    def ensure_can_start(path: Path) -> None:
        """Raise if a live server already owns ``path``; clear stale files."""

        path = path.expanduser()
        if not path.exists():
            return
        record = read_record(path)
        if record is not None and pid_alive(record.pid):
            raise PidFileError(f"Classifier server already running (PID {record.pid}).")
        path.unlink(missing_ok=True)


def running_server(path: Path) -> ServerRecord | None:
    """Return the live server record for ``path``, removing stale files."""

    path = path.expanduser()
    record = read_record(path)
    if record is None:
        return None
    if pid_alive(record.pid):
        return record
    path.unlink(missing_ok=True)
    return None


__all__ = [
    "PidFile",
    "PidFileError",
    "ServerRecord",
    "pid_alive",
    "read_record",
    "running_server",
]
