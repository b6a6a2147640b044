"""Integration tests for CLI functionality."""

import json
import subprocess
import sys

import pytest

from numerik_pkg.cli import main_entry


def run_cli(*args, timeout=60):
    return subprocess.run(
        [sys.executable, "-m", "numerik_pkg", *args],
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def test_cli_version():
    """Test --version flag."""
    result = run_cli("--version")
    assert result.returncode == 0
    assert result.stdout.strip() != ""


def test_cli_bisect_json():
    result = run_cli("--format", "json", "bisect", "x^3 - x - 2", "1", "2")
    assert result.returncode == 0
    data = json.loads(result.stdout)
    assert data["ok"] is True
    assert abs(data["root"] - 1.52138) < 1e-4
    assert data["trace"][0]["index"] == 1


def test_cli_bisect_human_with_trace():
    result = run_cli("--trace", "bisect", "x^3 - x - 2", "1", "2")
    assert result.returncode == 0
    assert "root: 1.52138" in result.stdout
    assert "fc" in result.stdout


def test_cli_sign_error_exit_code():
    result = run_cli("bisect", "x^2 + 1", "-1", "1")
    assert result.returncode == 1
    assert "SIGN_ERROR" in result.stdout


def test_cli_root_comparison():
    result = run_cli("bisect", "x^3 - x - 2", "1", "2", "--compare")
    assert result.returncode == 0
    assert "bisection" in result.stdout and "newton" in result.stdout


def test_cli_lu_prints_factors():
    result = run_cli("lu", "2 1 1; 4 -6 0; -2 7 2", "5 -2 9 | 1 0 0")
    assert result.returncode == 0
    assert "L =" in result.stdout
    assert "U =" in result.stdout
    assert "permutation: [1," in result.stdout


def test_cli_gauss_seidel_warning():
    result = run_cli("gauss-seidel", "1 2; 3 1", "3 4", "--max-iter", "10")
    assert result.returncode == 0
    assert "NOT_DIAGONALLY_DOMINANT" in result.stdout


def test_cli_simpson_odd_partition():
    result = run_cli("--format", "json", "simpson", "sin(x)", "0", "pi", "7")
    assert result.returncode == 1
    assert json.loads(result.stdout)["error_code"] == "INVALID_PARTITION"


def test_cli_ode_compare():
    result = run_cli(
        "--format",
        "json",
        "ode",
        "y - t^2 + 1",
        "0",
        "0.5",
        "2",
        "--compare",
        "--exact",
        "(t+1)^2 - 0.5*exp(t)",
    )
    assert result.returncode == 0
    data = json.loads(result.stdout)
    assert [row["method"] for row in data["rows"]] == ["rk23", "rk45", "dop853"]


def test_cli_numdiff_plot(tmp_path):
    target = tmp_path / "errors.png"
    result = run_cli("numdiff", "sin(x)", "1", "--plot", str(target))
    assert result.returncode == 0
    assert target.exists()


class TestMainEntry:
    """Call main_entry in-process."""

    def test_gradient_custom_variables(self, capsys):
        code = main_entry(
            ["gradient", "(v-55)^2 + (m-8)^2 + 300", "40", "5", "0.1", "--variables", "v,m"]
        )
        assert code == 0
        assert "converged: True" in capsys.readouterr().out

    def test_bad_variables_option(self, capsys):
        assert main_entry(["gradient", "x + y", "0", "0", "0.1", "--variables", "x"]) == 1

    def test_parse_error(self, capsys):
        assert main_entry(["golden", "import os", "0", "1"]) == 1
        assert "PARSE_ERROR" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main_entry([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_precision_override(self, capsys, monkeypatch):
        import numerik_pkg.config as config

        monkeypatch.setattr(config, "OUTPUT_PRECISION", config.OUTPUT_PRECISION)
        assert main_entry(["--precision", "3", "newton", "x^2 - 2", "1"]) == 0
        assert "root: 1.41\n" in capsys.readouterr().out

    @pytest.mark.parametrize("method", ["rk23", "rk45", "dop853"])
    def test_ode_methods(self, method, capsys):
        assert main_entry(["ode", "y - t^2 + 1", "0", "0.5", "2", "--method", method]) == 0
