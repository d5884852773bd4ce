from llm_playground.storage import SlotStore
from tests.storage.base import SlotStoreTestCase


class SlotStoreTests(SlotStoreTestCase):
    def test_missing_slot_reads_none(self) -> None:
        self.assertIsNone(self._store.read("absent"))

    def test_write_then_overwrite(self) -> None:
        self._store.write("k", "one")
        self._store.write("k", "two")
        self.assertEqual("two", self._store.read("k"))
        self.assertEqual(["k"], self._store.keys())

    def test_delete(self) -> None:
        self._store.write("k", "v")
        self._store.delete("k")
        self._store.delete("never-written")
        self.assertIsNone(self._store.read("k"))
        self.assertEqual([], self._store.keys())

    def test_values_survive_reopen(self) -> None:
        self._store.write("playground_config", '{"systemPrompt": "x"}')
        self._store.close()

        self._store = SlotStore(str(self._db_path))
        self.assertEqual('{"systemPrompt": "x"}', self._store.read("playground_config"))

    def test_creates_missing_parent_directories(self) -> None:
        nested = SlotStore(str(self._tmp_dir / "a" / "b" / "nested.db"))
        try:
            nested.write("k", "v")
            self.assertTrue((self._tmp_dir / "a" / "b" / "nested.db").exists())
        finally:
            nested.close()
