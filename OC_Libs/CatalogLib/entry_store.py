"""
Ordered, deduplicated storage of image entries.

Entries are keyed by their resolved URI, in insertion order, with a second
index by identity. The store holds no lock: one writer at a time.
"""

from typing import Dict, Iterator, List, Optional

from OC_Libs.CatalogLib.image_entry import ImageEntry


class EntryStore:
    """Insertion-ordered mapping of URI to entry, with lookup by identity."""

    def __init__(self) -> None:
        self._by_uri: Dict[str, ImageEntry] = {}
        self._by_identity: Dict[str, ImageEntry] = {}
        self._keys: Dict[str, str] = {}

    def add(self, entry: ImageEntry) -> bool:
        """
        Add an entry unless its URI or identity is already present.

        Returns:
            True if added, False if an entry for the same image exists
        """
        key = entry.uri
        if key in self._by_uri or entry.identity in self._by_identity:
            return False
        self._by_uri[key] = entry
        self._by_identity[entry.identity] = entry
        self._keys[entry.identity] = key
        return True

    def get(self, uri: str) -> Optional[ImageEntry]:
        return self._by_uri.get(uri)

    def get_by_identity(self, identity: str) -> Optional[ImageEntry]:
        return self._by_identity.get(identity)

    def remove(self, uri: str) -> Optional[ImageEntry]:
        """Remove by URI; returns the removed entry or None if absent."""
        entry = self._by_uri.pop(uri, None)
        if entry is not None:
            self._by_identity.pop(entry.identity, None)
            self._keys.pop(entry.identity, None)
        return entry

    def remove_by_identity(self, identity: str) -> Optional[ImageEntry]:
        key = self._keys.get(identity)
        if key is None:
            return None
        return self.remove(key)

    def rekey(self) -> List[ImageEntry]:
        """
        Rebuild URI keys after the base directory changed.

        Keeps insertion order. If two entries now resolve to the same URI the
        first one wins and the others are dropped and returned.
        """
        entries = list(self._by_uri.values())
        self.clear()
        dropped = []
        for entry in entries:
            if not self.add(entry):
                dropped.append(entry)
        return dropped

    def clear(self) -> None:
        self._by_uri.clear()
        self._by_identity.clear()
        self._keys.clear()

    def list(self) -> List[ImageEntry]:
        return list(self._by_uri.values())

    def size(self) -> int:
        return len(self._by_uri)

    def is_empty(self) -> bool:
        return not self._by_uri

    def __len__(self) -> int:
        return len(self._by_uri)

    def __iter__(self) -> Iterator[ImageEntry]:
        return iter(list(self._by_uri.values()))

    def __contains__(self, uri: object) -> bool:
        return uri in self._by_uri
