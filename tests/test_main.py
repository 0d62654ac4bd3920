"""Tests for the site-scheduler command-line interface."""

import json
import logging

import pytest

from site_scheduler.main import EXIT_ERROR, EXIT_NOT_FOUND, EXIT_OK, build_parser, main


@pytest.fixture
def cli_env(database, source_id, tmp_path, monkeypatch, clean_env):
    """Point the CLI at the test database and return a source id to use."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", database)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level

    yield source_id

    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


def run(capsys, *argv):
    """Run the CLI and return (exit_code, parsed stdout)."""
    capsys.readouterr()
    exit_code = main(list(argv))
    out = capsys.readouterr().out
    return exit_code, json.loads(out) if out.strip() else None


class TestParser:
    """Tests for argument parsing."""

    def test_create_arguments(self):
        args = build_parser().parse_args(
            ["sites", "create", "--name", "shop", "--source-id", "src", "--run-every-minutes", "5"]
        )

        assert args.resource == "sites"
        assert args.command == "create"
        assert args.run_every_minutes == 5
        assert args.disabled is False

    def test_update_toggle_flags(self):
        parser = build_parser()

        assert parser.parse_args(["sites", "update", "abc", "--enable"]).enabled is True
        assert parser.parse_args(["sites", "update", "abc", "--disable"]).enabled is False
        assert parser.parse_args(["sites", "update", "abc", "--name", "x"]).enabled is None

    def test_enable_and_disable_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sites", "update", "abc", "--enable", "--disable"])

    def test_resource_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_alert_and_scope_flags(self):
        args = build_parser().parse_args(
            ["sites", "update", "abc", "--alert-mode", "muted", "--scope", ""]
        )

        assert args.alert_mode == "muted"
        assert args.scope == ""
        assert args.http_alert_sink_id is None


class TestSiteCommands:
    """Tests for sites subcommands against a real database."""

    def test_create_prints_site_and_schedules_it(self, cli_env, capsys):
        code, site = run(
            capsys,
            "sites", "create", "--name", "storefront",
            "--source-id", cli_env, "--run-every-minutes", "2",
        )

        assert code == EXIT_OK
        assert site["name"] == "storefront"
        assert site["enabled"] is True

        code, schedules = run(capsys, "schedules", "list")
        assert code == EXIT_OK
        assert len(schedules) == 1
        assert schedules[0]["task_name"] == f"site:{site['id']}"
        assert schedules[0]["interval_seconds"] == 120
        assert schedules[0]["site_id"] == site["id"]
        assert schedules[0]["run_every_minutes"] == 2

    def test_create_disabled_has_no_schedule(self, cli_env, capsys):
        run(
            capsys,
            "sites", "create", "--name", "storefront", "--source-id", cli_env,
            "--run-every-minutes", "2", "--disabled",
        )

        _, schedules = run(capsys, "schedules", "list")
        assert schedules == []

    def test_update_disable_removes_schedule(self, cli_env, capsys):
        _, site = run(
            capsys,
            "sites", "create", "--name", "storefront",
            "--source-id", cli_env, "--run-every-minutes", "2",
        )

        code, updated = run(capsys, "sites", "update", site["id"], "--disable")

        assert code == EXIT_OK
        assert updated["enabled"] is False
        _, schedules = run(capsys, "schedules", "list")
        assert schedules == []

    def test_get_and_list(self, cli_env, capsys):
        _, site = run(
            capsys,
            "sites", "create", "--name", "storefront",
            "--source-id", cli_env, "--run-every-minutes", "2",
        )

        code, fetched = run(capsys, "sites", "get", site["id"])
        assert code == EXIT_OK
        assert fetched["id"] == site["id"]

        code, listed = run(capsys, "sites", "list", "--q", "STORE", "--enabled")
        assert code == EXIT_OK
        assert [s["id"] for s in listed] == [site["id"]]

    def test_delete(self, cli_env, capsys):
        _, site = run(
            capsys,
            "sites", "create", "--name", "storefront",
            "--source-id", cli_env, "--run-every-minutes", "5",
        )

        code, result = run(capsys, "sites", "delete", site["id"])

        assert code == EXIT_OK
        assert result == {"id": site["id"], "deleted": True}
        _, schedules = run(capsys, "schedules", "list")
        assert schedules == []

    def test_delete_missing_returns_not_found(self, cli_env, capsys):
        code, result = run(capsys, "sites", "delete", "missing")

        assert code == EXIT_NOT_FOUND
        assert result["deleted"] is False

    def test_get_missing_returns_not_found(self, cli_env, capsys):
        code, _ = run(capsys, "sites", "get", "missing")

        assert code == EXIT_NOT_FOUND

    def test_update_missing_returns_not_found(self, cli_env, capsys):
        code, _ = run(capsys, "sites", "update", "missing", "--enable")

        assert code == EXIT_NOT_FOUND

    def test_invalid_interval_is_rejected(self, cli_env, capsys):
        code, output = run(
            capsys,
            "sites", "create", "--name", "storefront",
            "--source-id", cli_env, "--run-every-minutes", "0",
        )

        assert code == EXIT_ERROR
        assert output is None

    def test_update_without_fields_is_rejected(self, cli_env, capsys):
        code, _ = run(capsys, "sites", "update", "abc")

        assert code == EXIT_ERROR

    def test_unknown_source_is_a_storage_error(self, cli_env, capsys):
        code, _ = run(
            capsys,
            "sites", "create", "--name", "storefront",
            "--source-id", "no-such-source", "--run-every-minutes", "5",
        )

        assert code == EXIT_ERROR

    def test_alert_mode_and_scope_round_trip(self, cli_env, capsys):
        code, site = run(
            capsys,
            "sites", "create", "--name", "storefront", "--source-id", cli_env,
            "--run-every-minutes", "2", "--alert-mode", "MUTED", "--scope", "eu",
        )
        run(
            capsys,
            "sites", "create", "--name", "search", "--source-id", cli_env,
            "--run-every-minutes", "2", "--scope", "eu-west",
        )

        assert code == EXIT_OK
        assert site["alert_mode"] == "muted"
        assert site["scope"] == "eu"
        assert site["http_alert_sink_id"] is None

        _, listed = run(capsys, "sites", "list", "--scope", "eu")
        assert [s["id"] for s in listed] == [site["id"]]

        code, updated = run(capsys, "sites", "update", site["id"], "--scope", "")
        assert code == EXIT_OK
        assert updated["scope"] is None
        assert updated["alert_mode"] == "muted"

    def test_invalid_alert_mode_is_rejected(self, cli_env, capsys):
        code, output = run(
            capsys,
            "sites", "create", "--name", "storefront", "--source-id", cli_env,
            "--run-every-minutes", "2", "--alert-mode", "silent",
        )

        assert code == EXIT_ERROR
        assert output is None

    def test_unknown_alert_sink_is_a_storage_error(self, cli_env, capsys):
        code, _ = run(
            capsys,
            "sites", "create", "--name", "storefront", "--source-id", cli_env,
            "--run-every-minutes", "2", "--http-alert-sink-id", "no-such-sink",
        )

        assert code == EXIT_ERROR


class TestStartupErrors:
    """Tests for configuration and database failures at startup."""

    def test_missing_config_file(self, cli_env, tmp_path, capsys):
        code = main(["--config", str(tmp_path / "missing.yaml"), "schedules", "list"])

        assert code == EXIT_ERROR
        assert "Configuration Error" in capsys.readouterr().err

    def test_invalid_log_level_in_environment(self, cli_env, monkeypatch, capsys):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        assert main(["schedules", "list"]) == EXIT_ERROR

    def test_invalid_database_url(self, cli_env, monkeypatch, capsys):
        monkeypatch.setenv("DATABASE_URL", "not a url")

        assert main(["schedules", "list"]) == EXIT_ERROR
        assert "Database Error" in capsys.readouterr().err
