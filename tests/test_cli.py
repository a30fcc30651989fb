"""Tests for the CLI."""

from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from cart_harness.cli import cli
from cart_harness.models.config import HarnessConfig
from cart_harness.models.run_result import RunResult, ScenarioResult


def _write_config(tmp_path) -> str:
    path = tmp_path / "cart-harness.json"
    HarnessConfig(
        base_url="https://shop.example.com",
        session_dir=str(tmp_path / ".auth"),
        report_output_dir=str(tmp_path / "reports"),
    ).save(path)
    return str(path)


def _run_result(*outcomes: str) -> RunResult:
    result = RunResult(
        run_id="run_test", started_at="now", target_url="https://shop.example.com",
        scenario_results=[ScenarioResult(name=f"s{i}", result=o) for i, o in enumerate(outcomes)],
    )
    result.tally()
    return result


class TestCli:
    def test_init_writes_config(self, tmp_path):
        path = tmp_path / "cfg.json"
        result = CliRunner().invoke(cli, ["init", "--target", "https://shop.example.com", "-c", str(path)])

        assert result.exit_code == 0
        assert HarnessConfig.load(path).base_url == "https://shop.example.com"

    def test_scenarios_lists_registry(self):
        result = CliRunner().invoke(cli, ["scenarios"])
        assert result.exit_code == 0
        assert "empty_cart" in result.output
        assert "ten_same_product" in result.output

    def test_sessions_clear(self, tmp_path):
        config = _write_config(tmp_path)
        (tmp_path / ".auth").mkdir()
        (tmp_path / ".auth" / "0.json").write_text("{}")

        result = CliRunner().invoke(cli, ["sessions", "clear", "-c", config])

        assert result.exit_code == 0
        assert "Removed 1" in result.output
        assert not (tmp_path / ".auth" / "0.json").exists()

    def test_run_missing_config(self, tmp_path):
        result = CliRunner().invoke(cli, ["run", "-c", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_run_all_pass(self, tmp_path):
        config = _write_config(tmp_path)
        with patch("cart_harness.cli.ScenarioRunner.run", AsyncMock(return_value=_run_result("pass", "pass"))) as run:
            result = CliRunner().invoke(cli, ["run", "-c", config, "-s", "empty_cart", "-w", "2"])

        assert result.exit_code == 0
        assert "2/2 passed" in result.output
        run.assert_awaited_once_with(["empty_cart"])

    def test_run_with_failure_exits_nonzero(self, tmp_path):
        config = _write_config(tmp_path)
        with patch("cart_harness.cli.ScenarioRunner.run", AsyncMock(return_value=_run_result("pass", "fail"))):
            result = CliRunner().invoke(cli, ["run", "-c", config])

        assert result.exit_code == 1

    def test_run_unknown_scenario(self, tmp_path):
        config = _write_config(tmp_path)
        result = CliRunner().invoke(cli, ["run", "-c", config, "-s", "bogus"])
        assert result.exit_code == 2
        assert "bogus" in result.output
        assert not (tmp_path / "reports").exists()

    def test_run_rejects_zero_workers(self, tmp_path):
        config = _write_config(tmp_path)
        with patch("cart_harness.cli.ScenarioRunner.run", AsyncMock()) as run:
            result = CliRunner().invoke(cli, ["run", "-c", config, "-w", "0"])

        assert result.exit_code == 2
        run.assert_not_awaited()

    def test_run_reports_worker_setup_failure(self, tmp_path):
        config = _write_config(tmp_path)
        outcome = _run_result("pass")
        outcome.worker_errors = ["worker 1: LoginError: login timed out"]
        with patch("cart_harness.cli.ScenarioRunner.run", AsyncMock(return_value=outcome)):
            result = CliRunner().invoke(cli, ["run", "-c", config])

        assert result.exit_code == 1
        assert "login timed out" in result.output
