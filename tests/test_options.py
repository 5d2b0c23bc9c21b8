import os
import unittest

from pydantic import ValidationError

from confstrap.config.models import DEFAULT_SEARCH_DIRS, BootstrapOptions, RemoteDescriptor, RetrySettings
from confstrap.config.options import resolve_dotenv_path, resolve_options


class ResolveOptionsTests(unittest.TestCase):
    def test_defaults_without_environment(self) -> None:
        options = resolve_options(None, {})
        self.assertEqual(options.config_type, "json")
        self.assertEqual(options.filename, "config")
        self.assertEqual(options.env_prefix, "")
        self.assertEqual(options.search_dirs, DEFAULT_SEARCH_DIRS)
        self.assertIsNone(options.remote)
        self.assertEqual(options.dotenv_path, ".env")

    def test_caller_values_override_defaults(self) -> None:
        caller = BootstrapOptions(config_type="yaml", filename="service", env_prefix="SVC")
        options = resolve_options(caller, {})
        self.assertEqual(options, caller)

    def test_environment_overrides_caller_values(self) -> None:
        caller = BootstrapOptions(
            config_type="yaml",
            filename="service",
            env_prefix="SVC",
            search_dirs=("/srv/conf",),
            remote=RemoteDescriptor(provider="consul", dsn="consul:8500", key="/service"),
        )
        environ = {
            "CONFSTRAP_TYPE": "TOML",
            "CONFSTRAP_FILENAME": "app",
            "CONFSTRAP_ENV_PREFIX": "APP",
            "CONFSTRAP_CONFIG_DIRS": os.pathsep.join(["/etc/app", "/opt/app"]),
            "CONFSTRAP_REMOTE_PROVIDER": "http",
            "CONFSTRAP_REMOTE_DSN": "https://config.internal",
            "CONFSTRAP_REMOTE_KEY": "app.toml",
        }
        options = resolve_options(caller, environ)
        self.assertEqual(options.config_type, "toml")
        self.assertEqual(options.filename, "app")
        self.assertEqual(options.env_prefix, "APP")
        self.assertEqual(options.search_dirs, ("/etc/app", "/opt/app"))
        self.assertEqual(
            options.remote,
            RemoteDescriptor(provider="http", dsn="https://config.internal", key="app.toml"),
        )

    def test_empty_variables_are_ignored(self) -> None:
        caller = BootstrapOptions(filename="service")
        options = resolve_options(caller, {"CONFSTRAP_FILENAME": "  ", "CONFSTRAP_TYPE": ""})
        self.assertEqual(options.filename, "service")
        self.assertEqual(options.config_type, "json")

    def test_single_remote_field_overrides_caller_descriptor(self) -> None:
        caller = BootstrapOptions(remote=RemoteDescriptor(provider="consul", dsn="consul:8500", key="/service"))
        options = resolve_options(caller, {"CONFSTRAP_REMOTE_DSN": "10.0.0.5:8500"})
        self.assertEqual(options.remote, RemoteDescriptor(provider="consul", dsn="10.0.0.5:8500", key="/service"))

    def test_partial_remote_from_environment_is_not_complete(self) -> None:
        options = resolve_options(None, {"CONFSTRAP_REMOTE_PROVIDER": "consul"})
        self.assertIsNotNone(options.remote)
        self.assertFalse(options.remote.is_complete)

    def test_consul_shortcut_defaults_key_to_filename(self) -> None:
        options = resolve_options(
            BootstrapOptions(filename="billing"),
            {"CONFSTRAP_CONSUL": "localhost:8500"},
        )
        self.assertEqual(options.remote, RemoteDescriptor(provider="consul", dsn="localhost:8500", key="/billing"))

    def test_consul_shortcut_respects_explicit_key(self) -> None:
        options = resolve_options(
            None,
            {"CONFSTRAP_CONSUL": "localhost:8500", "CONFSTRAP_REMOTE_KEY": "services/billing"},
        )
        self.assertEqual(options.remote.key, "services/billing")

    def test_dotenv_path_override(self) -> None:
        self.assertEqual(resolve_dotenv_path(BootstrapOptions(), {"CONFSTRAP_DOTENV": "/run/app.env"}), "/run/app.env")
        self.assertIsNone(resolve_dotenv_path(BootstrapOptions(dotenv_path=None), {}))

    def test_options_are_immutable(self) -> None:
        options = BootstrapOptions()
        with self.assertRaises(Exception):
            options.filename = "other"  # type: ignore[misc]

    def test_retry_settings_require_a_bound(self) -> None:
        with self.assertRaises(ValidationError):
            RetrySettings(max_elapsed_seconds=None)
        settings = RetrySettings(max_elapsed_seconds=None, max_attempts=3)
        self.assertEqual(settings.max_attempts, 3)


if __name__ == "__main__":
    unittest.main()
