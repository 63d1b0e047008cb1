"""Tests for CLI entry point.

Tests the command-line interface and argument parsing.
"""

from unittest.mock import MagicMock, Mock, patch

import pytest

from minio_bootstrap.cli import main, parse_args
from minio_bootstrap.config import ConfigError
from minio_bootstrap.mc import McError

ENVIRONMENT = {
    "MINIO_ROOT_USER": "admin",
    "MINIO_ROOT_PASSWORD": "adminpass123",
    "MINIO_BUCKET": "docs",
}


class TestParseArgs:
    """Tests for argument parsing."""

    def test_default_args(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        args = parse_args([])

        assert args.quiet is False
        assert args.log_level == "INFO"
        assert args.log_format == "text"
        assert args.wait_timeout is None

    def test_quiet_short_flag(self):
        assert parse_args(["-q"]).quiet is True

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert parse_args([]).log_level == "DEBUG"

    def test_log_level_flag_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert parse_args(["--log-level", "WARNING"]).log_level == "WARNING"

    def test_log_level_case_insensitive(self):
        assert parse_args(["--log-level", "debug"]).log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, capsys):
        with pytest.raises(SystemExit):
            parse_args(["--log-level", "verbos"])

        assert "invalid choice" in capsys.readouterr().err

    def test_unknown_log_level_from_environment_rejected(self, monkeypatch, capsys):
        monkeypatch.setenv("LOG_LEVEL", "verbos")

        with pytest.raises(SystemExit):
            parse_args([])

        assert "LOG_LEVEL" in capsys.readouterr().err

    def test_json_log_format(self):
        assert parse_args(["--log-format", "json"]).log_format == "json"

    def test_unknown_log_format_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--log-format", "xml"])

    def test_wait_timeout(self):
        assert parse_args(["--wait-timeout", "90"]).wait_timeout == 90.0


@patch("minio_bootstrap.cli.configure_logging")
class TestMain:
    """Tests for main with the runner mocked out."""

    @patch("minio_bootstrap.cli.MinioStorageService")
    @patch("minio_bootstrap.cli.BootstrapRunner")
    @patch("minio_bootstrap.cli.load_from_env")
    def test_success_exits_zero(self, mock_load, mock_runner_class, mock_storage_class, mock_logging, config):
        mock_load.return_value = config
        mock_runner_class.return_value.run.return_value = Mock(succeeded=True)

        assert main([]) == 0

    @patch("minio_bootstrap.cli.MinioStorageService")
    @patch("minio_bootstrap.cli.BootstrapRunner")
    @patch("minio_bootstrap.cli.load_from_env")
    def test_failure_exits_one(self, mock_load, mock_runner_class, mock_storage_class, mock_logging, config):
        mock_load.return_value = config
        mock_runner_class.return_value.run.return_value = Mock(succeeded=False)

        assert main([]) == 1

    @patch("minio_bootstrap.cli.MinioStorageService")
    @patch("minio_bootstrap.cli.BootstrapRunner")
    @patch("minio_bootstrap.cli.load_from_env")
    def test_runner_gets_storage_and_reporter(
        self, mock_load, mock_runner_class, mock_storage_class, mock_logging, config
    ):
        mock_load.return_value = config
        storage = mock_storage_class.return_value.__enter__.return_value

        main(["--quiet"])

        args, kwargs = mock_runner_class.call_args
        assert args == (config, storage)
        assert kwargs["reporter"].quiet is True
        mock_storage_class.return_value.__exit__.assert_called_once()

    @patch("minio_bootstrap.cli.BootstrapRunner")
    @patch("minio_bootstrap.cli.load_from_env")
    def test_config_error_exits_one(self, mock_load, mock_runner_class, mock_logging, capsys):
        mock_load.side_effect = ConfigError("Missing environment variable: MINIO_BUCKET")

        assert main([]) == 1

        assert "Configuration error: Missing environment variable: MINIO_BUCKET" in capsys.readouterr().err
        mock_runner_class.assert_not_called()

    @patch("minio_bootstrap.cli.MinioStorageService")
    @patch("minio_bootstrap.cli.BootstrapRunner")
    @patch("minio_bootstrap.cli.load_from_env")
    def test_wait_timeout_overrides_config(
        self, mock_load, mock_runner_class, mock_storage_class, mock_logging, config_factory
    ):
        mock_load.return_value = config_factory(wait_timeout=30.0)

        main(["--wait-timeout", "5"])

        assert mock_runner_class.call_args.args[0].wait_timeout == 5.0

    @patch("minio_bootstrap.cli.BootstrapRunner")
    @patch("minio_bootstrap.cli.load_from_env")
    def test_non_positive_wait_timeout_exits_one(self, mock_load, mock_runner_class, mock_logging, config):
        mock_load.return_value = config

        assert main(["--wait-timeout", "0"]) == 1

        mock_runner_class.assert_not_called()

    @patch("minio_bootstrap.cli.MinioStorageService")
    @patch("minio_bootstrap.cli.BootstrapRunner")
    @patch("minio_bootstrap.cli.load_from_env")
    def test_logging_configured_from_flags(
        self, mock_load, mock_runner_class, mock_storage_class, mock_logging, config
    ):
        mock_load.return_value = config

        main(["--log-level", "DEBUG", "--log-format", "json"])

        mock_logging.assert_called_once_with("DEBUG", "json")


@patch("minio_bootstrap.cli.configure_logging")
@patch("minio_bootstrap.retry.time.sleep")
class TestMainAgainstFakeStorage:
    """main wired to the in-memory storage service."""

    @pytest.fixture
    def environment(self, monkeypatch):
        for name in ("MINIO_ENDPOINT", "MC_ALIAS", "MC_ALIAS_TMP", "ACCESS_LEN", "SECRET_LEN", "MINIO_WAIT_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)
        for name, value in ENVIRONMENT.items():
            monkeypatch.setenv(name, value)

    @pytest.fixture
    def storage_class(self, storage):
        mock_class = MagicMock()
        mock_class.return_value.__enter__.return_value = storage
        return mock_class

    def test_provisions_everything(self, mock_sleep, mock_logging, storage, storage_class, environment, capsys):
        with patch("minio_bootstrap.cli.MinioStorageService", storage_class):
            exit_code = main(["--quiet"])

        assert exit_code == 0
        assert "docs" in storage.buckets
        access_key = next(iter(storage.users))
        output = capsys.readouterr().out
        assert "[MINIO CONFIG]" in output
        assert f"Access Key: {access_key}" in output

    def test_failed_step_exits_one(self, mock_sleep, mock_logging, storage, storage_class, environment):
        storage.fail_always["policy_attach"] = McError("policy attach failed")

        with patch("minio_bootstrap.cli.MinioStorageService", storage_class):
            exit_code = main(["--quiet"])

        assert exit_code == 1
        assert storage.call_count("list_bucket") == 0
