import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from conquest.config import HEIGHT, SEED_ENV, WIDTH, GameConfig, load_config


class LoadConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        with mock.patch.dict(os.environ, {SEED_ENV: ""}):
            config = load_config()
        self.assertEqual(config, GameConfig())
        self.assertEqual((config.width, config.height), (WIDTH, HEIGHT))

    def test_file_then_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "setup.json"
            path.write_text(json.dumps({"players": 3, "width": 200, "colour": "red"}), encoding="utf-8")
            messages = []
            config = load_config(path, log_fn=messages.append, width=300, seed=None)
        self.assertEqual(config.players, 3)
        self.assertEqual(config.width, 300)
        self.assertEqual(messages, ["Config field colour ignored (unknown)"])

    def test_seed_from_environment(self) -> None:
        with mock.patch.dict(os.environ, {SEED_ENV: "99"}):
            self.assertEqual(load_config().seed, 99)
            self.assertEqual(load_config(seed=4).seed, 4)

    def test_bad_environment_seed(self) -> None:
        with mock.patch.dict(os.environ, {SEED_ENV: "abc"}):
            with self.assertRaises(ValueError):
                load_config()

    def test_invalid_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "broken.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_config(path)
            with self.assertRaises(ValueError):
                load_config(Path(tmp) / "missing.json")

    def test_invalid_player_counts(self) -> None:
        with self.assertRaises(ValueError):
            load_config(players=0)
        with self.assertRaises(ValueError):
            load_config(players=2, humans=3)


if __name__ == "__main__":
    unittest.main()
