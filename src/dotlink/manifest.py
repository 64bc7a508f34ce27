"""Persistent log of the backups taken during one run."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Iterable

from tomli_w import dump as toml_dump

from .models import BackupRecord

MANIFEST_FILENAME = "manifest.toml"


class BackupManifest:
    """Append-only record of what a run backed up, stored next to the backups."""

    def __init__(self, path: Path, records: list[BackupRecord] | None = None) -> None:
        self.path = path
        self._records: list[BackupRecord] = records or []

    @classmethod
    def load(cls, path: Path) -> "BackupManifest":
        if not path.exists():
            return cls(path, [])

        with path.open("rb") as handle:
            data = tomllib.load(handle)

        records = [
            BackupRecord(
                original=Path(item["original"]),
                backup=Path(item["backup"]) if "backup" in item else None,
                old_target=item.get("old_target"),
            )
            for item in data.get("records", [])
        ]
        return cls(path, records)

    def append(self, record: BackupRecord) -> None:
        self._records.append(record)
        self.save()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"records": [self._record_to_dict(record) for record in self._records]}
        with self.path.open("wb") as handle:
            toml_dump(payload, handle)

    def records(self) -> Iterable[BackupRecord]:
        return tuple(self._records)

    @staticmethod
    def _record_to_dict(record: BackupRecord) -> dict[str, object]:
        payload: dict[str, object] = {"original": str(record.original)}
        if record.backup is not None:
            payload["backup"] = str(record.backup)
        if record.old_target is not None:
            payload["old_target"] = record.old_target
        return payload
