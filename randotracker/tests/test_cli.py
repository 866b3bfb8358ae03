"""
Tests for the command line.
"""

import json

import pytest

from ..cli import main


@pytest.fixture
def logic_file(tmp_path, sample_logic_data):
    path = tmp_path / "logic.json"
    path.write_text(json.dumps(sample_logic_data), encoding="utf-8")
    return str(path)


class TestCli:
    """Tests for the CLI subcommands."""

    def test_validate(self, logic_file, capsys):
        main(["validate", logic_file])
        out = capsys.readouterr().out
        assert "Logic: Sample" in out
        assert "OK" in out

    def test_validate_errors_exit(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("items:\n  a: {name: A}\nrules:\n  broken: [3]\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", str(path)])
        assert exc_info.value.code == 1
        assert "broken" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["validate", str(tmp_path / "missing.json")])
        assert "File not found" in capsys.readouterr().out

    def test_facts_with_set(self, logic_file, capsys):
        main(["facts", logic_file, "--set", "moonPearl", "--set", "hammer", "--bound-only"])
        out = capsys.readouterr().out
        assert "* darkWorld: True" in out
        assert "  hammer: True" not in out

    def test_facts_rejects_bound(self, logic_file, capsys):
        with pytest.raises(SystemExit):
            main(["facts", logic_file, "--set", "darkWorld"])
        assert "bound to a rule" in capsys.readouterr().out

    def test_explain(self, logic_file, capsys):
        main(["explain", logic_file, "canLift"])
        out = capsys.readouterr().out
        assert "Requires: Power Glove or Titan's Mitt" in out

    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])
