"""
test_exporters.py - Testes de exportacao JSON

Propósito:
    Verificar a estrutura do payload e a escrita em disco.
"""

from __future__ import annotations

import json
from pathlib import Path

from fizgraph.constants import VERSION
from fizgraph.exporters.json_export import EXPORT_FORMAT_VERSION, build_json_payload, export_json


def test_payload_structure(compile_text):
    compilation = compile_text("x = f()\nn[g(x)]\nh(q)")
    payload = build_json_payload(compilation)

    assert payload["version"] == EXPORT_FORMAT_VERSION
    metadata = payload["export_metadata"]
    assert metadata["compiler_version"] == VERSION
    assert metadata["node_count"] == 3
    assert metadata["edge_count"] == 1
    assert metadata["dag_count"] == 2
    assert metadata["error_count"] == 1
    assert "timestamp" in metadata

    assert payload["dag"]["id"] == "id0"
    assert payload["dag"]["variables"] == {"x": "id1"}
    assert payload["dag"]["children"][0]["name"] == "n"
    assert payload["errors"] == [
        {
            "position": {"from": 18, "to": 19},
            "message": "Variable 'q' not found",
            "severity": "error",
            "source": "Reference",
        }
    ]


def test_style_tags_serialize_as_lists(compile_text):
    payload = compile_text("#s{color: red}\ng(){#s}").to_json_dict()
    [node] = payload["dag"]["nodes"]
    assert node["style_tags"] == [["s"]]
    assert payload["dag"]["styles"] == {"s": {"color": "red"}}


def test_export_json_writes_file(compile_text, tmp_path: Path):
    compilation = compile_text("f()")
    target = tmp_path / "graph.json"
    export_json(compilation, target)
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["dag"]["nodes"][0]["name"] == "f"
    assert data["errors"] == []


def test_compilation_to_json(compile_text, tmp_path: Path):
    target = tmp_path / "out.json"
    compile_text("f()").to_json(target)
    assert json.loads(target.read_text(encoding="utf-8"))["version"] == EXPORT_FORMAT_VERSION
