from __future__ import annotations

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _run_cli(tmp_path: Path, *args: str) -> subprocess.CompletedProcess[str]:
    config_file = tmp_path / "config.toml"
    if not config_file.exists():
        config_file.write_text("[ingestion]\ntarget_page_size = 10\n", encoding="utf-8")
    cmd = [
        sys.executable,
        "-m",
        "verity.config_manager",
        "--config",
        str(config_file),
        *args,
    ]
    return subprocess.run(cmd, check=False, capture_output=True, text=True, cwd=PROJECT_ROOT)


def test_validate_success(tmp_path: Path) -> None:
    result = _run_cli(tmp_path, "--validate")
    assert result.returncode == 0
    assert "Configuration OK" in result.stdout


def test_explain_reports_source(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text("VERITY__INGESTION__TARGET_PAGE_SIZE=25\n", encoding="utf-8")
    result = _run_cli(tmp_path, "--explain", "ingestion.target_page_size")
    assert result.returncode == 0
    assert "ingestion.target_page_size = 25" in result.stdout
    assert "VERITY__INGESTION__TARGET_PAGE_SIZE" in result.stdout


def test_dump_defaults_is_toml(tmp_path: Path) -> None:
    result = _run_cli(tmp_path, "--dump-defaults")
    assert result.returncode == 0
    assert "[ingestion]" in result.stdout
    assert "target_page_size = 20" in result.stdout
    assert "[reliability]" in result.stdout


def test_print_schema_lists_fields(tmp_path: Path) -> None:
    result = _run_cli(tmp_path, "--print-schema")
    assert result.returncode == 0
    assert "| ingestion.min_per_source_quota |" in result.stdout


def test_validate_failure_reports_error(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[ingestion]\nrequest_timeout_seconds = 'oops'\n", encoding="utf-8")
    result = _run_cli(tmp_path, "--validate")
    assert result.returncode == 1
    assert "ingestion.request_timeout_seconds" in result.stderr
    assert "file" in result.stderr
