"""Tests for the command line reconciliation script."""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "reconcile_notifications.py"


@pytest.fixture()
def script(session, monkeypatch):
    """Load the script with its database bound to the test session."""

    module_spec = importlib.util.spec_from_file_location("reconcile_notifications_script", SCRIPT_PATH)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    monkeypatch.setattr(module, "SessionLocal", lambda: session)
    monkeypatch.setattr(module, "initialize_database", lambda: None)
    return module


def test_script_prints_json_summary(script, add_person, capsys):
    add_person(1)

    exit_code = script.main(["--json"])

    assert exit_code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["created"] == 1
    assert summary["categories"][0]["generator_id"] == "MissingPersonDocument"


def test_script_prints_text_summary(script, add_person, capsys):
    add_person(1)

    assert script.main(["--generator", "MissingPersonDocument"]) == 0
    assert "Criadas: 1" in capsys.readouterr().out


def test_script_rejects_unknown_generator(script):
    with pytest.raises(SystemExit, match="Geradores desconhecidos: Inexistente"):
        script.main(["--generator", "Inexistente"])
