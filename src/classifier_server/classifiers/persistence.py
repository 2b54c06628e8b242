"""Snapshot helpers for the built-in classifiers."""

from __future__ import annotations

import pickle
import uuid
from pathlib import Path
from typing import Any

SNAPSHOT_VERSION = 1


def write_snapshot(path: Path, variant: str, state: dict[str, Any]) -> None:
    """Pickle ``state`` tagged with ``variant`` using an atomic rename."""

    payload = {"variant": variant, "version": SNAPSHOT_VERSION, "state": state}
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        with tmp_path.open("wb") as handle:
            pickle.dump(payload, handle)
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def read_snapshot(path: Path, variant: str) -> dict[str, Any]:
    """Return the state stored in ``path``; raises ValueError on a foreign snapshot."""

    with path.open("rb") as handle:
        payload = pickle.load(handle)
    if not isinstance(payload, dict) or "state" not in payload:
        raise ValueError(f"{path} is not a classifier snapshot")
    stored_variant = payload.get("variant")
    if stored_variant != variant:
        raise ValueError(f"{path} holds a '{stored_variant}' snapshot, expected '{variant}'")
    version = payload.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version {version!r} in {path}")
    state = payload["state"]
    if not isinstance(state, dict):
        raise ValueError(f"{path} holds a malformed snapshot")
    return state


__all__ = ["SNAPSHOT_VERSION", "read_snapshot", "write_snapshot"]
