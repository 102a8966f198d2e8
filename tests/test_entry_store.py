"""Unit tests for EntryStore."""

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace

from OC_Libs.CatalogLib.entry_store import EntryStore
from OC_Libs.CatalogLib.image_entry import ImageEntry


class TestEntryStore(unittest.TestCase):
    """Validate ordering, deduplication and identity lookup."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.project = SimpleNamespace(
            base_directory=Path(self.temp_dir.name).resolve(),
            mask_image_names=False,
            mark_modified=lambda: None,
        )
        self.store = EntryStore()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _entry(self, uri: str, **kwargs) -> ImageEntry:
        return ImageEntry(self.project, uri, **kwargs)

    def test_add_then_duplicate(self):
        self.assertTrue(self.store.add(self._entry("fake://a")))
        self.assertFalse(self.store.add(self._entry("fake://a")))
        self.assertEqual(self.store.size(), 1)

    def test_first_writer_wins(self):
        first = self._entry("fake://a", image_name="first")
        self.store.add(first)
        self.store.add(self._entry("fake://a", image_name="second"))

        self.assertIs(self.store.get("fake://a"), first)

    def test_duplicate_identity_rejected(self):
        self.store.add(self._entry("fake://a", identity="same"))

        self.assertFalse(self.store.add(self._entry("fake://b", identity="same")))

    def test_list_preserves_insertion_order(self):
        for uri in ("fake://c", "fake://a", "fake://b"):
            self.store.add(self._entry(uri))

        self.assertEqual([e.uri for e in self.store.list()], ["fake://c", "fake://a", "fake://b"])
        self.assertEqual([e.uri for e in self.store], ["fake://c", "fake://a", "fake://b"])

    def test_lookup_by_identity(self):
        entry = self._entry("fake://a")
        self.store.add(entry)

        self.assertIs(self.store.get_by_identity(entry.identity), entry)
        self.assertIsNone(self.store.get_by_identity("missing"))

    def test_remove_is_idempotent(self):
        entry = self._entry("fake://a")
        self.store.add(entry)

        self.assertIs(self.store.remove("fake://a"), entry)
        self.assertIsNone(self.store.remove("fake://a"))
        self.assertIsNone(self.store.get_by_identity(entry.identity))
        self.assertTrue(self.store.is_empty())

    def test_remove_by_identity_is_idempotent(self):
        entry = self._entry("fake://a")
        self.store.add(entry)

        self.assertIs(self.store.remove_by_identity(entry.identity), entry)
        self.assertIsNone(self.store.remove_by_identity(entry.identity))
        self.assertNotIn("fake://a", self.store)

    def test_size_and_empty(self):
        self.assertTrue(self.store.is_empty())
        self.assertEqual(len(self.store), 0)

        self.store.add(self._entry("fake://a"))
        self.store.add(self._entry("fake://b"))

        self.assertFalse(self.store.is_empty())
        self.assertEqual(len(self.store), 2)

    def test_rekey_after_base_change(self):
        old_base = self.project.base_directory / "old"
        new_base = self.project.base_directory / "new"
        self.project.base_directory = old_base
        entry = self._entry((old_base / "a.png").as_uri())
        self.store.add(entry)

        self.project.base_directory = new_base
        dropped = self.store.rekey()

        self.assertEqual(dropped, [])
        self.assertIs(self.store.get((new_base.resolve() / "a.png").as_uri()), entry)
        self.assertIs(self.store.remove_by_identity(entry.identity), entry)


if __name__ == "__main__":
    unittest.main()
