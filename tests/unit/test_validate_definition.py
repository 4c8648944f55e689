"""Tests for the validate_definition script."""

import json
import sys
from pathlib import Path

import pytest

from scripts.validate_definition import main

EXAMPLE = Path(__file__).resolve().parents[2] / "examples" / "orders" / "api.json"

BROKEN = {
    "api": {"name": "orders-api", "schema": "type Query { ping: String }"},
    "datasources": [{"name": "NoneDS", "type": "NONE"}],
    "functions": {"fetch": {"datasource": "Missing"}},
    "pipeline_resolvers": {"run": {"type": "Mutation", "functions": []}},
    "authentication_types": ["API_KEY"],
}


def run(monkeypatch, *args: str) -> int:
    monkeypatch.setattr(sys, "argv", ["validate_definition.py", *args])
    monkeypatch.setenv("LOG_LEVEL", "CRITICAL")
    return main()


class TestValidateDefinition:
    """Tests for the command line entry point."""

    def test_valid_file(self, monkeypatch, capsys):
        """A valid definition exits 0 with a summary."""
        assert run(monkeypatch, "--file", str(EXAMPLE)) == 0

        out = capsys.readouterr().out
        assert "is valid" in out
        assert "Pipeline resolvers: 1" in out

    def test_graph_output(self, monkeypatch, capsys):
        """--graph prints the resolved graph as JSON."""
        assert run(monkeypatch, "--file", str(EXAMPLE), "--graph") == 0

        graph = json.loads(capsys.readouterr().out)
        assert graph["api"]["name"] == "orders-api"

    def test_broken_file_lists_every_problem(self, monkeypatch, capsys, tmp_path):
        """All problems are printed and the exit code is 1."""
        path = tmp_path / "api.json"
        path.write_text(json.dumps(BROKEN))

        assert run(monkeypatch, "--file", str(path)) == 1

        out = capsys.readouterr().out
        assert "2 problem(s)" in out
        assert "unknown datasource 'Missing'" in out

    def test_json_errors(self, monkeypatch, capsys, tmp_path):
        """--json prints the CompilationError as a dict."""
        path = tmp_path / "api.json"
        path.write_text(json.dumps(BROKEN))

        assert run(monkeypatch, "--file", str(path), "--json") == 1

        payload = json.loads(capsys.readouterr().out)
        assert payload["errorCode"] == "COMPILATION_FAILED"
        assert len(payload["errors"]) == 2

    def test_missing_file(self, monkeypatch, capsys, tmp_path):
        """An unreadable file exits 1."""
        assert run(monkeypatch, "--file", str(tmp_path / "nope.json")) == 1

        assert "Cannot read" in capsys.readouterr().out

    def test_wrongly_typed_section_listed(self, monkeypatch, capsys, tmp_path):
        """A section of the wrong type is listed like any other problem."""
        path = tmp_path / "api.json"
        path.write_text(json.dumps({**BROKEN, "auth": {"user_pool": "us-east-1_x"}}))

        assert run(monkeypatch, "--file", str(path)) == 1

        assert "auth: user_pool must be an object" in capsys.readouterr().out

    def test_malformed_json(self, monkeypatch, capsys, tmp_path):
        """A syntax error is reported instead of a traceback."""
        path = tmp_path / "api.json"
        path.write_text('{"api": ')

        assert run(monkeypatch, "--file", str(path)) == 1

        assert "not valid JSON" in capsys.readouterr().out
