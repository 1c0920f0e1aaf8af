"""Tests for the command line interface."""

import json

from treemetrics.cli import main


class TestScanCommand:
    def test_scan_reports_issues_as_json(self, sample_project, capsys):
        """Test scanning with JSON output."""
        exit_code = main(["scan", str(sample_project), "--threshold", "1", "--format", "json"])

        data = json.loads(capsys.readouterr().out)
        assert exit_code == 2
        assert data["summary"] == {"count": 1, "skipped": 1}
        assert data["issues"][0]["function"] == "route"

    def test_scan_clean_project(self, sample_project, capsys):
        """Test scanning a file without issues."""
        exit_code = main(["scan", str(sample_project / "src" / "simple.ts")])

        output = capsys.readouterr().out
        assert exit_code == 0
        assert "Issues: 0" in output

    def test_scan_writes_output_file(self, sample_project, tmp_path, capsys):
        """Test writing the report to a file."""
        target = tmp_path / "report.sarif"
        main(["scan", str(sample_project), "--threshold", "1", "--format", "sarif", "--output", str(target)])

        data = json.loads(target.read_text(encoding="utf-8"))
        assert data["version"] == "2.1.0"
        assert capsys.readouterr().out == ""

    def test_fail_on_issues_disabled(self, sample_project, tmp_path):
        """Test the exit code when fail_on_issues is off."""
        config = tmp_path / "config.yaml"
        config.write_text("reporting:\n  fail_on_issues: false\n")

        assert main(["scan", str(sample_project), "--threshold", "1", "--config", str(config)]) == 0

    def test_invalid_threshold(self, sample_project, capsys):
        """Test an invalid threshold on the command line."""
        assert main(["scan", str(sample_project), "--threshold", "0"]) == 1
        assert "Invalid threshold" in capsys.readouterr().err


class TestCpdCommand:
    def test_cpd_dumps_tokens(self, sample_project, capsys):
        """Test dumping CPD tokens."""
        exit_code = main(["cpd", str(sample_project / "src" / "complex.js")])

        data = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        [tokens] = data.values()
        assert tokens[0] == {
            "location": {"startLine": 1, "startCol": 0, "endLine": 1, "endCol": 8},
            "image": "function",
        }
        assert "LITERAL" in [token["image"] for token in tokens]
