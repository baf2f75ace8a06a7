"""Tests for the click CLI."""

import json
from unittest.mock import patch

from click.testing import CliRunner

from looker.cli import build_overrides, cli
from looker.errors import ConfigError
from looker.models.results import RunResult


def _run_opts(**overrides) -> dict:
    """Options dict as click passes it when no flag is given."""
    opts = {
        "url": None, "sitemap": None, "urls_file": None, "no_discover": False, "max_pages": None,
        "include": None, "exclude": None, "viewport_widths": None, "viewport_config": None,
        "mobile_only": False, "desktop_only": False, "wait_for": None, "delay": None,
        "no_animations": False, "hide": (), "auth": None, "dark_mode": False, "timeout": None,
        "no_scroll_reveal": False, "model": None, "api_key": None, "api_url": None, "prompt": None, "focus": None,
        "goals": None, "output": None, "output_file": None, "no_cache": False, "cache_dir": None,
        "fresh": False, "fail_on": None,
    }
    opts.update(overrides)
    return opts


class TestBuildOverrides:
    """Tests for mapping CLI flags to config fields."""

    def test_unset_flags_do_not_override(self):
        overrides = build_overrides(_run_opts())
        assert overrides["no_cache"] is None
        assert overrides["viewports"] is None
        assert overrides["capture"]["scroll_reveal"] is None
        assert overrides["hide"] is None

    def test_flags_mapped(self):
        overrides = build_overrides(_run_opts(
            url="https://a.com/", no_scroll_reveal=True, dark_mode=True, hide=(".ad", ".chat"),
            mobile_only=True, api_key="k", fresh=True,
        ))
        assert overrides["url"] == "https://a.com/"
        assert overrides["capture"]["scroll_reveal"] is False
        assert overrides["capture"]["dark_mode"] is True
        assert overrides["hide"] == [".ad", ".chat"]
        assert overrides["viewports"][0]["name"] == "mobile"
        assert overrides["analysis"]["api_key"] == "k"
        assert overrides["fresh"] is True

    def test_openai_model_selects_provider(self):
        overrides = build_overrides(_run_opts(model="gpt-4o", api_url="https://gateway.example/v1"))
        assert overrides["analysis"]["provider"] == "openai"
        assert overrides["analysis"]["api_url"] == "https://gateway.example/v1"

    def test_no_model_leaves_provider_unset(self):
        assert build_overrides(_run_opts())["analysis"]["provider"] is None


class TestRunCommand:
    """Tests for `looker run`."""

    def test_exit_code_from_result(self, tmp_path):
        runner = CliRunner()
        result_obj = RunResult(run_id="run_1", started_at="2025-01-01T00:00:00Z", exit_code=1)

        with runner.isolated_filesystem(temp_dir=tmp_path), \
                patch("looker.cli.Orchestrator") as orchestrator:
            orchestrator.return_value.run.return_value = result_obj
            result = runner.invoke(cli, ["run", "--url", "https://a.com/", "--viewports", "375", "--fail-on", "info"])

        assert result.exit_code == 1
        cfg = orchestrator.call_args.args[0]
        assert cfg.url == "https://a.com/"
        assert [v.name for v in cfg.viewports] == ["mobile"]
        assert cfg.fail_on == "info"

    def test_success(self, tmp_path):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path), \
                patch("looker.cli.Orchestrator") as orchestrator:
            orchestrator.return_value.run.return_value = RunResult(run_id="run_1", started_at="now")
            result = runner.invoke(cli, ["run", "--no-discover"])

        assert result.exit_code == 0
        assert orchestrator.call_args.args[0].no_discover is True

    def test_fatal_error_exits_2(self, tmp_path):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path), \
                patch("looker.cli.Orchestrator") as orchestrator:
            orchestrator.return_value.run.side_effect = ConfigError("No URLs to analyze.")
            result = runner.invoke(cli, ["run"])

        assert result.exit_code == 2

    def test_invalid_viewports_exit_2(self, tmp_path):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path), patch("looker.cli.Orchestrator") as orchestrator:
            result = runner.invoke(cli, ["run", "--viewports", "big"])

        assert result.exit_code == 2
        orchestrator.assert_not_called()

    def test_config_file_respected(self, tmp_path):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path), \
                patch("looker.cli.Orchestrator") as orchestrator:
            with open(".lookerrc.json", "w") as f:
                json.dump({"url": "https://file.com/", "max_pages": 2}, f)
            orchestrator.return_value.run.return_value = RunResult(run_id="run_1", started_at="now")
            runner.invoke(cli, ["run", "--max-pages", "5"])

        cfg = orchestrator.call_args.args[0]
        assert cfg.url == "https://file.com/"
        assert cfg.max_pages == 5


class TestOtherCommands:
    def test_init_writes_config(self, tmp_path):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path) as fs:
            result = runner.invoke(cli, ["init", "--url", "https://a.com/"])
            with open(f"{fs}/.lookerrc.json") as f:
                data = json.load(f)

        assert result.exit_code == 0
        assert data["url"] == "https://a.com/"

    def test_cache_clear(self, tmp_path):
        runner = CliRunner()
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        (cache_dir / "manifest.json").write_text(json.dumps({"entries": {
            "abc": {"url": "https://a.com/", "viewport": {"name": "m", "width": 1, "height": 1},
                    "timestamp": "t", "file_path": "abc.png"},
        }}))

        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["cache", "clear", "--cache-dir", str(cache_dir)])

        assert result.exit_code == 0
        assert json.loads((cache_dir / "manifest.json").read_text()) == {"entries": {}}
