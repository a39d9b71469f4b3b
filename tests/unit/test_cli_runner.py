# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Tests for cli_runner.py"""

from pathlib import Path
from unittest.mock import Mock, patch

import orjson
import pytest

from perfkit.common.config import SummaryOptions


@pytest.fixture
def results_file(tmp_path: Path, sample_results) -> Path:
    path = tmp_path / "results.json"
    path.write_bytes(orjson.dumps(sample_results))
    return path


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the rich handler off the perfkit logger during CLI tests."""
    with patch("perfkit.cli_runner.setup_rich_logging") as mock_setup:
        yield mock_setup


class TestRunTransform:
    def test_writes_summary_json(self, results_file, tmp_path):
        from perfkit.cli_runner import run_transform

        output = tmp_path / "out" / "summary.json"
        run_transform(results_file, test_name="checkout", environment="ci", output=output)

        data = orjson.loads(output.read_bytes())
        assert data["testName"] == "checkout"
        assert data["environment"] == "ci"
        assert data["passRate"] == 98.0
        assert data["metadata"]["version"] == "1.0.0"

    def test_metadata_file_names_the_test(self, results_file, tmp_path):
        from perfkit.cli_runner import run_transform

        metadata_file = tmp_path / "meta.json"
        metadata_file.write_bytes(orjson.dumps({"testName": "from-file", "build": 7}))
        output = tmp_path / "summary.json"

        run_transform(results_file, metadata_file=metadata_file, output=output)

        data = orjson.loads(output.read_bytes())
        assert data["testName"] == "from-file"
        assert data["metadata"]["build"] == 7

    @pytest.mark.parametrize("content", [b"{broken", b"[1, 2]"])
    def test_bad_results_file_exits(self, tmp_path, content):
        from perfkit.cli_runner import run_transform

        path = tmp_path / "bad.json"
        path.write_bytes(content)
        with pytest.raises(SystemExit) as exc_info:
            run_transform(path)
        assert exc_info.value.code == 1

    def test_missing_results_file_exits(self, tmp_path):
        from perfkit.cli_runner import run_transform

        with pytest.raises(SystemExit):
            run_transform(tmp_path / "missing.json")


class TestRunReport:
    def test_delivers_with_overrides(self, results_file, make_transport):
        from perfkit.cli_runner import run_report

        transport = make_transport(201)
        with patch("perfkit.reporting.reporter.HttpxReportTransport", return_value=transport):
            run_report(
                results_file,
                test_name="checkout",
                overrides={"api_url": "https://collector", "api_key": "k", "max_retries": None},
            )

        assert transport.calls[0]["url"] == "https://collector/api/performance-runs"
        assert transport.calls[0]["headers"]["Authorization"] == "Bearer k"

    def test_config_file_reporting_section(self, results_file, tmp_path, make_transport):
        from perfkit.cli_runner import run_report

        config_file = tmp_path / "config.json"
        config_file.write_bytes(
            orjson.dumps(
                {
                    "reporting": {
                        "api_url": "https://from-config",
                        "api_key": "cfg",
                        "environment": "perf",
                        "unrelated": True,
                    }
                }
            )
        )
        transport = make_transport(200)
        with patch("perfkit.reporting.reporter.HttpxReportTransport", return_value=transport):
            run_report(results_file, config_file=config_file, overrides={"api_key": "cli"})

        call = transport.calls[0]
        assert call["url"] == "https://from-config/api/performance-runs"
        assert call["headers"]["Authorization"] == "Bearer cli"
        assert orjson.loads(call["content"])["environment"] == "perf"

    def test_missing_credentials_exit(self, results_file, monkeypatch):
        from perfkit.cli_runner import run_report
        from perfkit.common.environment import Environment

        monkeypatch.setattr(Environment.REPORTING, "API_URL", None)
        monkeypatch.setattr(Environment.REPORTING, "API_KEY", None)

        with pytest.raises(SystemExit) as exc_info:
            run_report(results_file)
        assert exc_info.value.code == 1

    def test_rejected_report_exits(self, results_file, make_transport):
        from perfkit.cli_runner import run_report

        with patch(
            "perfkit.reporting.reporter.HttpxReportTransport",
            return_value=make_transport(422),
        ):
            with pytest.raises(SystemExit) as exc_info:
                run_report(
                    results_file, overrides={"api_url": "https://c", "api_key": "k"}
                )
        assert exc_info.value.code == 1


class TestRunSummary:
    def test_prints_and_writes_reports(
        self, results_file, tmp_path, monkeypatch, capsys
    ):
        from perfkit.cli_runner import run_summary
        from perfkit.common.environment import Environment

        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Environment.REPORTING, "API_URL", None)

        run_summary(
            results_file,
            test_name="checkout",
            options=SummaryOptions(generate_files=True),
        )

        assert "Throughput (req/s)" in capsys.readouterr().out
        written = sorted(p.suffix for p in (tmp_path / "reports").iterdir())
        assert written == [".html", ".json"]


class TestRunPresets:
    def test_lists_presets(self, capsys):
        from perfkit.cli_runner import run_presets

        run_presets()

        out = capsys.readouterr().out
        assert "smoke" in out
        assert "breakpoint" in out

    def test_prints_one_preset(self, capsys):
        from perfkit.cli_runner import run_presets

        run_presets("light")

        assert '"vus": 1' in capsys.readouterr().out

    def test_unknown_preset_exits(self):
        from perfkit.cli_runner import run_presets

        with pytest.raises(SystemExit):
            run_presets("warp")


class TestCliCommands:
    @patch("perfkit.cli_runner.run_summary")
    def test_summary_builds_options(self, mock_run: Mock, results_file):
        from perfkit.cli import summary

        summary(results_file, test_name="checkout", html=False, generate_files=True)

        options = mock_run.call_args.kwargs["options"]
        assert options.generate_html_report is False
        assert options.generate_files is True
        assert options.reports_dir == "reports"

    @patch("perfkit.cli_runner.run_report")
    def test_report_passes_overrides(self, mock_run: Mock, results_file):
        from perfkit.cli import report

        report(results_file, api_url="https://c", max_retries=2)

        overrides = mock_run.call_args.kwargs["overrides"]
        assert overrides["api_url"] == "https://c"
        assert overrides["max_retries"] == 2
        assert overrides["api_key"] is None
