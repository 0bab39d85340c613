"""
In-memory link registry.

The registry is the authority on which origin file each destination link
points at. It is keyed by destination path and keeps a secondary index by
origin path so deletion events can find the link of a removed file.

Instances are confined to the event loop that owns the Organizer: watcher
threads and scheduler jobs submit coroutines to that loop instead of calling
into the registry directly, so no lock is needed.
"""

import os
from typing import Any, Dict, Iterator, List, Optional

from .models import LinkRecord


class LinkRegistry:
    def __init__(self) -> None:
        self._links: Dict[str, LinkRecord] = {}
        self._by_origin: Dict[str, List[str]] = {}

    def __len__(self) -> int:
        return len(self._links)

    def __contains__(self, destination_path: str) -> bool:
        return destination_path in self._links

    def __iter__(self) -> Iterator[LinkRecord]:
        return iter(list(self._links.values()))

    def find(self, destination_path: str) -> Optional[LinkRecord]:
        return self._links.get(destination_path)

    def find_by_origin(self, origin_path: str) -> Optional[LinkRecord]:
        """Return the first link created for origin_path, if any."""
        destinations = self._by_origin.get(origin_path)
        if not destinations:
            return None
        return self._links[destinations[0]]

    def upsert(self, destination_path: str, origin_path: str, metadata: Dict[str, Any]) -> LinkRecord:
        existing = self._links.get(destination_path)
        if existing is not None:
            self._unindex(existing)
        record = LinkRecord(destination_path, origin_path, dict(metadata or {}))
        self._links[destination_path] = record
        self._by_origin.setdefault(origin_path, []).append(destination_path)
        return record

    def remove(self, destination_path: str) -> Optional[LinkRecord]:
        record = self._links.pop(destination_path, None)
        if record is not None:
            self._unindex(record)
        return record

    def find_under(self, directory: str) -> List[LinkRecord]:
        """Records whose origin lies below directory."""
        prefix = os.path.join(directory, "")
        return [r for r in self._links.values() if r.origin_path.startswith(prefix)]

    def snapshot(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self._links.values()]

    def _unindex(self, record: LinkRecord) -> None:
        destinations = self._by_origin.get(record.origin_path)
        if not destinations:
            return
        if record.destination_path in destinations:
            destinations.remove(record.destination_path)
        if not destinations:
            del self._by_origin[record.origin_path]
