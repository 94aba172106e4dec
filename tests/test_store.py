import json
import tempfile
import unittest
from pathlib import Path

from game.accounts import create_user, current_user, login, logout, password_strength, verify_user
from storage.store import CURRENT_USER_KEY, USER_STATS_KEY, USERS_KEY, LocalStore


class TestLocalStore(unittest.TestCase):
    def test_in_memory_store(self) -> None:
        store = LocalStore()
        self.assertIsNone(store.get("theme"))
        self.assertEqual(store.get("theme", "light"), "light")
        store.set("theme", "dark")
        self.assertEqual(store.get("theme"), "dark")
        store.delete("theme")
        self.assertEqual(store.keys(), [])

    def test_values_are_copied(self) -> None:
        store = LocalStore()
        value = {"ada": 10}
        store.set("best_times", value)
        value["ada"] = 1
        loaded = store.get("best_times")
        loaded["ada"] = 2
        self.assertEqual(store.get("best_times"), {"ada": 10})

    def test_file_store_persists(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "nested" / "store.json"
            LocalStore(str(path)).set("sound_enabled", False)

            self.assertEqual(json.loads(path.read_text(encoding="utf-8")), {"sound_enabled": False})
            self.assertFalse(LocalStore(str(path)).get("sound_enabled"))

    def test_corrupt_file_starts_empty(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "store.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertLogs("storage.store", level="WARNING"):
                store = LocalStore(str(path))
            self.assertEqual(store.keys(), [])


class TestAccounts(unittest.TestCase):
    def setUp(self) -> None:
        self.store = LocalStore()

    def test_register_and_login(self) -> None:
        create_user(self.store, "ada_l", "secret1")
        self.assertIn("ada_l", self.store.get(USERS_KEY))
        self.assertIn("ada_l", self.store.get(USER_STATS_KEY))
        self.assertNotEqual(self.store.get(USERS_KEY)["ada_l"]["password_hash"], "secret1")

        self.assertEqual(login(self.store, "ada_l", "secret1"), "ada_l")
        self.assertEqual(current_user(self.store), "ada_l")
        self.assertIsNotNone(self.store.get(USERS_KEY)["ada_l"]["last_login"])

        logout(self.store)
        self.assertIsNone(self.store.get(CURRENT_USER_KEY))

    def test_rejects_bad_registrations(self) -> None:
        with self.assertRaises(ValueError):
            create_user(self.store, "ab", "secret1")
        with self.assertRaises(ValueError):
            create_user(self.store, "bad name", "secret1")
        with self.assertRaises(ValueError):
            create_user(self.store, "ada_l", "abc")
        create_user(self.store, "ada_l", "secret1")
        with self.assertRaises(ValueError):
            create_user(self.store, "ada_l", "other12")

    def test_wrong_password(self) -> None:
        create_user(self.store, "ada_l", "secret1")
        self.assertFalse(verify_user(self.store, "ada_l", "nope"))
        with self.assertRaisesRegex(ValueError, "Invalid username or password"):
            login(self.store, "ada_l", "nope")
        with self.assertRaisesRegex(ValueError, "fill in all fields"):
            login(self.store, "", "")
        self.assertIsNone(current_user(self.store))

    def test_password_strength(self) -> None:
        self.assertEqual(password_strength(""), "empty")
        self.assertEqual(password_strength("abcd"), "weak")
        self.assertEqual(password_strength("abcdefg1"), "medium")
        self.assertEqual(password_strength("Abcdefg1!"), "strong")


if __name__ == "__main__":
    unittest.main()
