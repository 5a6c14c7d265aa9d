"""
Tests for the command-line entry point.
"""

import json

import pytest

from energy_scheduler.__main__ import build_parser, main


@pytest.fixture
def request_file(tmp_path):
    path = tmp_path / "request.json"
    path.write_text(
        json.dumps(
            {
                "window": {"start": "2025-06-23", "end": "2025-06-24"},
                "flexible_tasks": [{"id": "essay", "title": "Essay"}],
                "config": {
                    "population_size": 6,
                    "generations": 2,
                    "elitism_count": 1,
                    "max_workers": 1,
                },
            }
        ),
        encoding="utf-8",
    )
    return path


class TestMain:
    """Test cases for running the optimizer from the command line."""

    def test_writes_output_file(self, request_file, tmp_path):
        output = tmp_path / "schedule.json"
        exit_code = main([str(request_file), "--seed", "3", "--output", str(output)])

        assert exit_code == 0
        response = json.loads(output.read_text(encoding="utf-8"))
        assert response["result"]["success"] is True
        assert response["result"]["unscheduled_tasks"] == []

    def test_prints_to_stdout(self, request_file, capsys):
        exit_code = main([str(request_file), "--log-level", "WARNING"])
        assert exit_code == 0
        response = json.loads(capsys.readouterr().out)
        assert response["result"]["status"] == "COMPLETED"

    def test_failed_request_exits_non_zero(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"flexible_tasks": [{"id": "x", "title": "X"}]}), encoding="utf-8")

        assert main([str(path)]) == 1
        response = json.loads(capsys.readouterr().out)
        assert response["result"]["error_code"] == "INVALID_WINDOW"

    def test_parser_rejects_unknown_log_level(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["request.json", "--log-level", "LOUD"])
