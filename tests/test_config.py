import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from reservation_engine import ConfigError, EngineSettings, load_settings
from reservation_engine.config import CONFIG_ENV_VAR
from reservation_engine.log_config import LOGGER_NAME, configure_logging


class TestLoadSettings(unittest.TestCase):
    def setUp(self) -> None:
        environment = patch.dict(os.environ, {}, clear=True)
        environment.start()
        self.addCleanup(environment.stop)

    def _write(self, temp_dir: str, text: str) -> Path:
        path = Path(temp_dir) / "engine.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults_without_file(self) -> None:
        settings = load_settings()

        self.assertEqual(settings, EngineSettings())
        self.assertEqual(settings.port, 8080)
        self.assertEqual(settings.get_timeout_seconds, 1.0)
        self.assertEqual(settings.ask_timeout_seconds, 3.0)
        self.assertEqual(settings.rules.max_stay_days, 3)
        self.assertFalse(settings.serialize_bookings)

    def test_reads_yaml_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = self._write(
                temp_dir,
                "port: 9090\n"
                "ask_timeout_seconds: 5\n"
                "serialize_bookings: true\n"
                "rules:\n"
                "  max_stay_days: 5\n"
                "load_check:\n"
                "  duration_seconds: 2\n"
                "  creates_per_tick: 3\n",
            )
            settings = load_settings(path)

        self.assertEqual(settings.port, 9090)
        self.assertEqual(settings.ask_timeout_seconds, 5.0)
        self.assertTrue(settings.serialize_bookings)
        self.assertEqual(settings.rules.max_stay_days, 5)
        self.assertEqual(settings.rules.min_lead_days, 1)
        self.assertEqual(settings.load_check.duration_seconds, 2.0)
        self.assertEqual(settings.load_check.creates_per_tick, 3)

    def test_reads_path_from_environment(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = self._write(temp_dir, "host: 0.0.0.0\nverbose: true\n")
            os.environ[CONFIG_ENV_VAR] = str(path)
            settings = load_settings()

        self.assertEqual(settings.host, "0.0.0.0")
        self.assertTrue(settings.verbose)

    def test_environment_overrides_single_fields(self) -> None:
        os.environ["RESERVATION_ENGINE_PORT"] = "9191"
        os.environ["RESERVATION_ENGINE_SERIALIZE_BOOKINGS"] = "true"
        os.environ["RESERVATION_ENGINE_RULES__MAX_STAY_DAYS"] = "4"

        settings = load_settings()

        self.assertEqual(settings.port, 9191)
        self.assertTrue(settings.serialize_bookings)
        self.assertEqual(settings.rules.max_stay_days, 4)
        self.assertEqual(settings.rules.min_lead_days, 1)

    def test_priority_is_overrides_then_environment_then_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = self._write(temp_dir, "port: 9090\nhost: 10.0.0.1\nmailbox_size: 16\n")
            os.environ["RESERVATION_ENGINE_PORT"] = "9191"
            os.environ["RESERVATION_ENGINE_HOST"] = "10.0.0.2"
            settings = load_settings(path, host="10.0.0.3")

        self.assertEqual(settings.host, "10.0.0.3")
        self.assertEqual(settings.port, 9191)
        self.assertEqual(settings.mailbox_size, 16)

    def test_numeric_text_is_accepted(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            settings = load_settings(self._write(temp_dir, 'port: "9090"\nget_timeout_seconds: "0.5"\n'))

        self.assertEqual(settings.port, 9090)
        self.assertEqual(settings.get_timeout_seconds, 0.5)

    def test_empty_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            settings = load_settings(self._write(temp_dir, ""))

        self.assertEqual(settings, EngineSettings())

    def test_unreadable_or_malformed_file_fails(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(ConfigError):
                load_settings(Path(temp_dir) / "missing.yaml")
            with self.assertRaises(ConfigError):
                load_settings(self._write(temp_dir, "port: [8080\n"))
            with self.assertRaises(ConfigError):
                load_settings(self._write(temp_dir, "- port\n- host\n"))

    def test_unknown_keys_are_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            settings = load_settings(self._write(temp_dir, "port: 8181\ntheme: dark\nrules:\n  colour: blue\n"))

        self.assertEqual(settings.port, 8181)
        self.assertEqual(settings.rules.max_stay_days, 3)

    def test_invalid_values_fail(self) -> None:
        for text in (
            "port: eighty\n",
            "serialize_bookings: maybe\n",
            "mailbox_size: 0\n",
            "get_timeout_seconds: -1\n",
            "rules:\n  max_stay_days: 0\n",
            "rules:\n  - max_stay_days\n",
            "load_check:\n  interval_seconds: 0\n",
        ):
            with self.subTest(text=text):
                with tempfile.TemporaryDirectory() as temp_dir:
                    with self.assertRaises(ConfigError):
                        load_settings(self._write(temp_dir, text))

    def test_invalid_environment_value_fails(self) -> None:
        os.environ["RESERVATION_ENGINE_MAILBOX_SIZE"] = "lots"

        with self.assertRaises(ConfigError):
            load_settings()


class TestConfigureLogging(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        self.addCleanup(setattr, root, "handlers", list(root.handlers))
        self.addCleanup(root.setLevel, root.level)
        engine_logger = logging.getLogger(LOGGER_NAME)
        self.addCleanup(engine_logger.setLevel, engine_logger.level)

    def test_sets_levels_and_single_handler(self) -> None:
        configure_logging(verbose=True)

        self.assertEqual(len(logging.getLogger().handlers), 1)
        self.assertEqual(logging.getLogger(LOGGER_NAME).level, logging.DEBUG)

        configure_logging(log_json=True)

        self.assertEqual(len(logging.getLogger().handlers), 1)
        self.assertEqual(logging.getLogger(LOGGER_NAME).level, logging.INFO)


if __name__ == "__main__":
    unittest.main()
