"""Tests for the command line interface."""

import json

import pytest

from reflector.config import CONFIG_ENV, MANUAL_ONLY_ENV
from reflector.main import main, resolve_target
from tests.shapes import Circle


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path, default_registry):
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.delenv(MANUAL_ONLY_ENV, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


def test_resolve_target():
    assert resolve_target("tests.shapes:Circle") is Circle
    with pytest.raises(ValueError):
        resolve_target("tests.shapes.Circle")


def test_describe_table(capsys):
    assert main(["describe", "tests.shapes:Circle"]) == 0

    out = capsys.readouterr().out
    assert "tests.shapes.Circle" in out
    assert "center" in out
    assert "radius" in out
    assert "2 fields" in out


def test_describe_json(capsys):
    assert main(["describe", "tests.shapes:Point", "--json"]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["count"] == 2
    assert report["source"] == "probe"
    assert [entry["offset"] for entry in report["fields"]] == [0, 8]


def test_offset(capsys):
    assert main(["offset", "tests.shapes:Vector", "1"]) == 0
    assert capsys.readouterr().out.strip() == "8"


def test_offset_out_of_range(capsys):
    assert main(["offset", "tests.shapes:Vector", "5"]) == 1
    assert "out of range" in capsys.readouterr().err


def test_union_is_rejected(capsys):
    assert main(["describe", "tests.shapes:Number"]) == 1
    assert "union" in capsys.readouterr().err


def test_manual_only_without_descriptor(capsys):
    assert main(["--manual-only", "describe", "tests.shapes:Mixed"]) == 1
    assert "manual-only" in capsys.readouterr().err


def test_manual_only_uses_registered_descriptor(capsys, default_registry):
    default_registry.register(Circle, "center", "radius")

    assert main(["--manual-only", "describe", "tests.shapes:Circle"]) == 0
    assert "provider" in capsys.readouterr().out


def test_missing_module(capsys):
    assert main(["describe", "no_such_module:Thing"]) == 2
    assert "cannot load" in capsys.readouterr().err
