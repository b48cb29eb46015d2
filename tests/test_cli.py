import json

import pytest

from installgate.cli import main

SPEC = {
    "conditions": [
        {"type": "variable", "id": "expert", "name": "MODE", "value": "expert"},
        {"type": "packselection", "id": "docs.selected", "packid": "docs"},
    ],
    "panelconditions": [{"panelid": "TuningPanel", "conditionid": "expert"}],
    "packconditions": [{"packid": "samples", "conditionid": "expert+docs.selected", "optional": True}],
}


@pytest.fixture
def spec_path(tmp_path):
    path = tmp_path / "conditions.json"
    path.write_text(json.dumps(SPEC), encoding="utf-8")
    return str(path)


def test_check_true(spec_path, capsys):
    assert main(["check", "--spec", spec_path, "--var", "MODE=expert", "expert"]) == 0
    assert capsys.readouterr().out.strip() == "true"


def test_check_false(spec_path, capsys):
    assert main(["check", "--spec", spec_path, "--var", "MODE=basic", "expert"]) == 3
    assert capsys.readouterr().out.strip() == "false"


def test_check_expression_with_selection(spec_path, capsys):
    argv = ["check", "--spec", spec_path, "--var", "MODE=expert", "--select", "docs", "@expert && docs.selected"]
    assert main(argv) == 0


def test_check_explain(spec_path, capsys):
    assert main(["check", "--spec", spec_path, "--explain", "expert"]) == 3
    explanation = json.loads(capsys.readouterr().out)
    assert explanation == {"id": "expert", "type": "variable", "name": "MODE", "value": "expert", "result": False}


def test_gates(spec_path, capsys):
    assert main(["gates", "--spec", spec_path, "--var", "MODE=expert"]) == 0
    decisions = json.loads(capsys.readouterr().out)
    assert decisions["panels"] == {"TuningPanel": True}
    assert decisions["packs"] == {"samples": False}
    assert decisions["optional_packs"] == {"samples": True}


def test_dump(spec_path, capsys):
    assert main(["dump", "--spec", spec_path]) == 0
    dumped = json.loads(capsys.readouterr().out)
    ids = [entry["id"] for entry in dumped["conditions"]]
    assert ids[:2] == ["expert", "docs.selected"]
    assert "installer.windowsinstall" in ids
    assert dumped["packconditions"] == [{"packid": "samples", "conditionid": "expert+docs.selected", "optional": True}]


def test_invalid_spec_exits_1(tmp_path, capsys):
    assert main(["check", "--spec", str(tmp_path / "absent.json"), "x"]) == 1
    assert "error:" in capsys.readouterr().err


def test_bad_var_exits_1(spec_path, capsys):
    assert main(["check", "--spec", spec_path, "--var", "MODE", "expert"]) == 1


def test_log_level_is_case_insensitive(spec_path, capsys):
    assert main(["check", "--spec", spec_path, "--log-level", "debug", "--var", "MODE=expert", "expert"]) == 0


def test_invalid_log_level_exits_2(spec_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["check", "--spec", spec_path, "--log-level", "LOUD", "expert"])
    assert excinfo.value.code == 2
    assert "--log-level" in capsys.readouterr().err


def test_unknown_command(capsys):
    assert main(["frobnicate"]) == 2
    assert "Unknown command" in capsys.readouterr().err


def test_help(capsys):
    assert main([]) == 0
    assert "check" in capsys.readouterr().out
