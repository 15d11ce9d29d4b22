"""Local key-value persistence.

Saved company/employee lists and the selected network. Storage is a
convenience: every read or write failure is logged and treated as "no data".
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol

from .config import (
    DEFAULT_NETWORK,
    NETWORKS,
    STORAGE_KEY_COMPANIES,
    STORAGE_KEY_EMPLOYEES,
    STORAGE_KEY_NETWORK,
)

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """All keys in one JSON object on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed store {self.path}")
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.warning(f"Could not persist {key} to {self.path}: {e}")


@dataclass(frozen=True)
class SavedEntry:
    id: str
    name: str


class SavedList:
    """JSON list of ``{id, name}`` entries under one key, unique by id."""

    def __init__(self, store: KeyValueStore, key: str):
        self.store = store
        self.key = key

    def load(self) -> List[SavedEntry]:
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.warning(f"Reading {self.key} failed: {e}")
            return []
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt {self.key}: {e}")
            return []
        entries = []
        seen = set()
        for item in items if isinstance(items, list) else []:
            if not isinstance(item, dict) or "id" not in item:
                continue
            entry_id = str(item["id"])
            if entry_id in seen:
                continue
            seen.add(entry_id)
            entries.append(SavedEntry(entry_id, str(item.get("name", entry_id))))
        return entries

    def _save(self, entries: List[SavedEntry]) -> None:
        try:
            self.store.set(self.key, json.dumps([asdict(e) for e in entries]))
        except Exception as e:
            logger.warning(f"Writing {self.key} failed: {e}")

    def add(self, entry_id: str, name: str) -> List[SavedEntry]:
        """Insert or rename; the list order is insertion order."""
        entries = self.load()
        for i, entry in enumerate(entries):
            if entry.id == entry_id:
                entries[i] = SavedEntry(entry_id, name)
                break
        else:
            entries.append(SavedEntry(entry_id, name))
        self._save(entries)
        return entries

    def remove(self, entry_id: str) -> List[SavedEntry]:
        entries = [e for e in self.load() if e.id != entry_id]
        self._save(entries)
        return entries


def saved_companies(store: KeyValueStore) -> SavedList:
    return SavedList(store, STORAGE_KEY_COMPANIES)


def saved_employees(store: KeyValueStore, company_id: str) -> SavedList:
    return SavedList(store, STORAGE_KEY_EMPLOYEES.format(company_id=company_id))


def resolve_network(
    store: Optional[KeyValueStore] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Stored choice, then ``STACKSPAY_NETWORK``, then the default network."""
    if store is not None:
        try:
            stored = store.get(STORAGE_KEY_NETWORK)
        except Exception as e:
            logger.debug(f"Network preference unavailable: {e}")
            stored = None
        if stored in NETWORKS:
            return stored
    env = os.environ if environ is None else environ
    value = env.get("STACKSPAY_NETWORK", "").lower()
    if value in NETWORKS:
        return value
    return DEFAULT_NETWORK


def remember_network(store: KeyValueStore, network: str) -> None:
    if network not in NETWORKS:
        raise ValueError(f"unknown network {network!r}")
    try:
        store.set(STORAGE_KEY_NETWORK, network)
    except Exception as e:
        logger.debug(f"Network preference not persisted: {e}")
