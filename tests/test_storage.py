import os
import unittest

from fakes import TempStorageMixin

from state import storage


class StorageTestCase(TempStorageMixin, unittest.IsolatedAsyncioTestCase):
    async def test_creates_file_and_table(self):
        async with storage.connect() as conn:
            cur = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table';"
            )
            tables = [row[0] for row in await cur.fetchall()]
            await cur.close()
        self.assertIn("kv_store", tables)
        self.assertTrue(os.path.exists(storage.STORAGE_PATH))

    async def test_set_get_overwrite(self):
        self.assertIsNone(await storage.get_item("token"))
        await storage.set_item("token", "abc")
        self.assertEqual(await storage.get_item("token"), "abc")
        await storage.set_item("token", "def")
        self.assertEqual(await storage.get_item("token"), "def")

    async def test_items_are_independent_entries(self):
        await storage.set_items({"token": "abc", "role": "ROLE_USER"})
        self.assertEqual(
            await storage.get_items(["token", "role", "email"]),
            {"token": "abc", "role": "ROLE_USER", "email": None},
        )

        await storage.remove_items(["token"])
        self.assertEqual(
            await storage.get_items(["token", "role"]),
            {"token": None, "role": "ROLE_USER"},
        )

    async def test_remove_missing_keys_is_fine(self):
        await storage.remove_items(["nothing", "here"])
        self.assertEqual(await storage.get_items([]), {})

    async def test_survives_reinitialization(self):
        await storage.set_item("email", "alice@example.com")
        # a new process starts with the flag cleared
        storage._initialized = False
        self.assertEqual(await storage.get_item("email"), "alice@example.com")


if __name__ == "__main__":
    unittest.main()
