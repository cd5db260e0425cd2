"""
json_export.py - Exportacao JSON de uma Compilation fiz

Proposito:
    Serializar a arvore de Dags compilada e seus diagnosticos para
    consumo por ferramentas de visualizacao e analise.

Componentes principais:
    - build_json_payload: monta o dicionario completo em memoria
    - export_json: escreve o payload em disco

Dependencias criticas:
    - json: serializacao
    - datetime: timestamp de exportacao

Exemplo de uso:
    from fizgraph.exporters.json_export import export_json
    export_json(compilation, Path("grafo.json"))

Notas de implementacao:
    - Estrutura: version, export_metadata, dag, errors
    - O Dag e serializado recursivamente via Dag.to_dict()
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict

from fizgraph.constants import VERSION

if TYPE_CHECKING:
    from fizgraph.compiler import Compilation

EXPORT_FORMAT_VERSION = "1.0"


def _build_export_metadata(compilation: "Compilation") -> Dict[str, Any]:
    """
    Constroi metadados de exportacao com contadores de toda a arvore.

    Returns:
        Dict com timestamp, versao do compilador e contadores
    """
    dags = list(compilation.dag.iter_dags())
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "compiler_version": VERSION,
        "node_count": sum(len(dag.nodes) for dag in dags),
        "edge_count": sum(len(dag.edges) for dag in dags),
        "dag_count": len(dags),
        "error_count": len(compilation.errors),
    }


def build_json_payload(compilation: "Compilation") -> Dict[str, Any]:
    return {
        "version": EXPORT_FORMAT_VERSION,
        "export_metadata": _build_export_metadata(compilation),
        "dag": compilation.dag.to_dict(),
        "errors": [error.to_dict() for error in compilation.errors],
    }


def export_json(compilation: "Compilation", path: Path) -> None:
    """Escreve o payload JSON em path (UTF-8, indentado)."""
    data = build_json_payload(compilation)
    payload = json.dumps(data, indent=2, ensure_ascii=False)
    Path(path).write_text(payload, encoding="utf-8")
