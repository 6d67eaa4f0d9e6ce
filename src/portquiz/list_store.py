"""Persistence for user-created port lists."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol, cast

from .models import PortKey, PortList

logger = logging.getLogger(__name__)

LISTS_FORMAT_VERSION = 1


class ListStore(Protocol):
    """Load and save custom (non built-in) port lists."""

    def load_custom_lists(self) -> list[PortList]: ...

    def save_custom_lists(self, lists: list[PortList]) -> None: ...


class MemoryListStore:
    """List store kept in process memory."""

    def __init__(self, lists: list[PortList] | None = None) -> None:
        self._lists = list(lists or [])

    def load_custom_lists(self) -> list[PortList]:
        return list(self._lists)

    def save_custom_lists(self, lists: list[PortList]) -> None:
        self._lists = [item for item in lists if not item.is_built_in]


class JsonListStore:
    """Custom lists stored as one JSON document on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load_custom_lists(self) -> list[PortList]:
        """Return stored lists; unreadable or corrupt files count as no lists."""
        if not self.path.exists():
            return []
        try:
            raw: object = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to load custom lists from %s", self.path)
            return []
        return _lists_from_payload(raw)

    def save_custom_lists(self, lists: list[PortList]) -> None:
        """Write all custom lists, replacing the previous file."""
        payload = {
            "format_version": LISTS_FORMAT_VERSION,
            "lists": [_list_to_dict(item) for item in lists if not item.is_built_in],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _list_to_dict(port_list: PortList) -> dict[str, object]:
    return {
        "id": port_list.id,
        "name": port_list.name,
        "portKeys": [str(key) for key in port_list.port_keys],
        "isBuiltIn": False,
    }


def _lists_from_payload(raw: object) -> list[PortList]:
    """Normalize a stored payload, skipping malformed list records.

    Accepts the versioned ``{"lists": [...]}`` document as well as a bare array.
    """
    if isinstance(raw, dict):
        raw = cast(dict[str, object], raw).get("lists")
    if not isinstance(raw, list):
        logger.error("Custom lists file has an unexpected shape; ignoring it.")
        return []

    lists: list[PortList] = []
    for item in cast(list[object], raw):
        if not isinstance(item, dict):
            continue
        row = cast(dict[str, object], item)
        list_id: object = row.get("id")
        name: object = row.get("name")
        if not isinstance(list_id, str) or not list_id.strip() or not isinstance(name, str):
            logger.warning("Skipping custom list without a valid id/name: %r", row)
            continue
        if row.get("isBuiltIn") is True:
            continue
        lists.append(PortList(id=list_id.strip(), name=name.strip(), port_keys=_keys_from_raw(row.get("portKeys"))))
    return lists


def _keys_from_raw(raw: object) -> tuple[PortKey, ...]:
    """Parse stored port keys, accepting ``"name-country"`` strings or ``{name, country}`` objects."""
    if not isinstance(raw, list):
        return ()
    keys: dict[PortKey, None] = {}
    for value in cast(list[object], raw):
        if isinstance(value, str):
            try:
                keys.setdefault(PortKey.parse(value), None)
            except ValueError:
                logger.warning("Skipping malformed port key %r", value)
            continue
        if isinstance(value, dict):
            pair = cast(dict[str, object], value)
            name, country = pair.get("name"), pair.get("country")
            if isinstance(name, str) and isinstance(country, str) and name.strip() and country.strip():
                keys.setdefault(PortKey(name.strip(), country.strip()), None)
    return tuple(keys)
