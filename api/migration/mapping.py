"""
Legacy id -> new uuid mapping, persisted as `<entity>_id_mapping.json`.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Iterable

logger = logging.getLogger(__name__)

ENTITIES = ("docentes", "escuelas", "expedientes", "disposiciones")


def mapping_path(directory: Path, entity: str) -> Path:
    return Path(directory) / f"{entity}_id_mapping.json"


def _key(legacy_id: Any) -> str:
    return str(legacy_id).strip()


def _as_uuid(value: Any) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class IdMapping:
    """
    Per-entity `legacy id -> uuid` table.

    Keys are stored as strings so they survive a JSON round trip.
    """

    def __init__(self, entries: dict[str, dict[str, str]] | None = None) -> None:
        self._entries: dict[str, dict[str, str]] = {entity: {} for entity in ENTITIES}
        for entity, values in (entries or {}).items():
            self._entries.setdefault(entity, {}).update({_key(k): str(v) for k, v in values.items()})

    @classmethod
    def load(cls, directory: Path, entities: Iterable[str] = ENTITIES) -> "IdMapping":
        entries: dict[str, dict[str, str]] = {}
        for entity in entities:
            path = mapping_path(directory, entity)
            if not path.exists():
                logger.info("mapping_missing entity=%s path=%s", entity, path)
                continue
            with path.open("r", encoding="utf-8") as fh:
                entries[entity] = json.load(fh)
            logger.info("mapping_loaded entity=%s entries=%s", entity, len(entries[entity]))
        return cls(entries)

    def save(self, directory: Path) -> None:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        for entity, values in self._entries.items():
            path = mapping_path(directory, entity)
            with path.open("w", encoding="utf-8") as fh:
                json.dump(values, fh, indent=2, sort_keys=True)
            logger.info("mapping_saved entity=%s entries=%s", entity, len(values))

    def entries(self, entity: str) -> dict[str, str]:
        return dict(self._entries.get(entity, {}))

    def lookup(self, entity: str, legacy_id: Any) -> uuid.UUID | None:
        """
        Recorded uuid for `legacy_id`, or None when unknown or empty.
        """
        if legacy_id is None or _key(legacy_id) == "":
            return None
        value = self._entries.get(entity, {}).get(_key(legacy_id))
        return _as_uuid(value) if value else None

    def resolve(self, entity: str, legacy_id: Any) -> uuid.UUID:
        """
        Recorded uuid for `legacy_id`, recording a fresh one when unknown.

        A legacy id that already is a uuid is kept as its own mapping.
        """
        known = self.lookup(entity, legacy_id)
        if known is not None:
            return known
        new_id = _as_uuid(legacy_id) or uuid.uuid4()
        self._entries.setdefault(entity, {})[_key(legacy_id)] = str(new_id)
        return new_id

    def problems(self) -> list[str]:
        """
        Values that are not uuids, and uuids mapped from more than one legacy id.
        """
        found: list[str] = []
        for entity, values in self._entries.items():
            owners: dict[str, str] = {}
            for legacy_id, value in values.items():
                parsed = _as_uuid(value)
                if parsed is None:
                    found.append(f"{entity}: {legacy_id!r} -> {value!r} is not a uuid")
                    continue
                previous = owners.setdefault(str(parsed), legacy_id)
                if previous != legacy_id:
                    found.append(f"{entity}: {value} is mapped from both {previous!r} and {legacy_id!r}")
        return found

    def __len__(self) -> int:
        return sum(len(values) for values in self._entries.values())
