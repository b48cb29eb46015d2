import json

import pytest

from installgate import (
    DanglingReferenceError,
    GateEvaluator,
    MalformedExpressionError,
    Pack,
    SpecLoadError,
    UnknownTypeError,
    build_registry,
    load_spec,
)

YAML_SPEC = """\
conditions:
  - type: variable
    id: expert
    name: MODE
    value: expert
  - type: compareversions
    id: java.11
    arg1: ${JAVA_VERSION}
    arg2: "11"
    operator: ge
panelconditions:
  - panelid: TuningPanel
    conditionid: expert
packconditions:
  - packid: jdk-tools
    conditionid: "@expert && java.11"
    optional: "true"
packs:
  - id: core
    langpackid: core
"""


def test_load_spec_requires_list_sections():
    with pytest.raises(SpecLoadError):
        load_spec({"conditions": {"type": "exists"}})


def test_load_spec_requires_mapping_entries():
    with pytest.raises(SpecLoadError):
        load_spec({"panelconditions": ["TuningPanel"]})


def test_load_spec_requires_binding_fields():
    with pytest.raises(SpecLoadError):
        load_spec({"packconditions": [{"packid": "docs"}]})


def test_load_spec_rejects_unsupported_source():
    with pytest.raises(SpecLoadError):
        load_spec(42)


def test_load_spec_rejects_invalid_json():
    with pytest.raises(SpecLoadError):
        load_spec('{"conditions": [')


def test_load_spec_reports_missing_file(tmp_path):
    with pytest.raises(SpecLoadError):
        load_spec(tmp_path / "absent.json")


@pytest.mark.parametrize("name", ["latin1.json", "latin1.yaml"])
def test_load_spec_rejects_undecodable_file(tmp_path, name):
    path = tmp_path / name
    path.write_bytes(b'{"conditions": [{"type": "user", "id": "caf\xe9"}]}')
    with pytest.raises(SpecLoadError):
        load_spec(path)


def test_load_spec_from_json_string():
    spec = load_spec(json.dumps({"packs": [{"id": "core", "langpackid": "core", "condition": "x"}]}))
    assert spec.packs == [Pack("core", lang_pack_id="core", condition="x")]
    assert spec.conditions == []


def test_load_spec_from_yaml_file(tmp_path, context):
    (tmp_path / "conditions.yml").write_text(YAML_SPEC, encoding="utf-8")
    spec = load_spec("conditions.yml", base_dir=tmp_path)

    assert [c["id"] for c in spec.conditions] == ["expert", "java.11"]
    assert spec.pack_bindings[0].optional is True

    gates = GateEvaluator(build_registry(spec, context))
    context.set_var("MODE", "expert")
    context.set_var("JAVA_VERSION", "17.0.2")
    assert gates.can_show_panel("TuningPanel") is True
    assert gates.can_install_pack("jdk-tools") is True
    assert gates.can_install_pack_optional("jdk-tools") is True
    assert gates.registry.is_true("installer.selected.core") is False


def test_load_spec_from_json_file(tmp_path):
    path = tmp_path / "conditions.json"
    path.write_text(json.dumps({"conditions": [{"type": "exists", "id": "x", "variable": "X"}]}), encoding="utf-8")
    assert load_spec(path).conditions == [{"type": "exists", "id": "x", "variable": "X"}]


def test_load_spec_rejects_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("conditions: [\n", encoding="utf-8")
    with pytest.raises(SpecLoadError):
        load_spec(path)


def test_build_registry_rejects_unknown_type(context):
    with pytest.raises(UnknownTypeError):
        build_registry(load_spec({"conditions": [{"type": "java", "id": "j"}]}), context)


def test_build_registry_reports_dangling_references(context):
    spec = load_spec(
        {
            "conditions": [
                {"type": "ref", "id": "r1", "refid": "missing"},
                {"type": "or", "id": "o", "operands": ["r1", "also.missing"]},
            ]
        }
    )
    with pytest.raises(DanglingReferenceError) as excinfo:
        build_registry(spec, context)
    assert excinfo.value.missing == ["also.missing", "missing"]


def test_build_registry_references_builtins(context):
    spec = load_spec({"conditions": [{"type": "not", "id": "not.linux", "operand": "installer.linuxinstall"}]})
    registry = build_registry(spec, context)
    assert registry.is_true("not.linux") is False


def test_build_registry_rejects_gate_on_unknown_condition(context):
    spec = load_spec({"panelconditions": [{"panelid": "P", "conditionid": "nowhere"}]})
    with pytest.raises(MalformedExpressionError) as excinfo:
        build_registry(spec, context)
    assert excinfo.value.expression == "nowhere"


def test_build_registry_rejects_malformed_gate_expression(context):
    spec = load_spec(
        {
            "conditions": [{"type": "user", "id": "a"}],
            "packconditions": [{"packid": "docs", "conditionid": "a+ghost"}],
        }
    )
    with pytest.raises(MalformedExpressionError):
        build_registry(spec, context)
