"""
dag.py - Grafo de dependencias e escopo lexico do compilador fiz

Proposito:
    Um Dag e ao mesmo tempo um grafo (nos e arestas) e um escopo lexico
    (variaveis, estilos nomeados, namespaces filhos). Os Dags formam uma
    arvore ligada por referencias parent/child_dags.

Componentes principais:
    - DagNode / DagEdge / DagStyle: elementos do grafo
    - ScopeMember: qual mapa de membros uma resolucao consulta
    - Dag: grafo + escopo, com resolucao de identificadores qualificados,
      manutencao de ids/nomes/pais e fusao (merge_dag)

Dependencias criticas:
    - logging: alerta quando uma travessia encontra um ciclo
    - copy: clone() de Dags de pacotes em cache

Exemplo de uso:
    root = Dag("root")
    child = Dag("c1", parent=root, name="lib")
    child.set_var_node("x", "node-1")
    root.get_var_node(("lib", "x"))   # -> "node-1"

Notas de implementacao:
    - Resolucao: tenta primeiro a subarvore do Dag atual; se nao achar,
      repete o caminho completo (sem remover prefixo) no pai, subindo.
    - Valor None encontrado significa "sem estilo" e encerra a busca.
    - Toda travessia que segue parent guarda os ids visitados.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Set

from fizgraph.ast.nodes import QualifiableIdentifier, Style, join_path

logger = logging.getLogger(__name__)

NodeId = str
EdgeId = str
DagId = str
StyleProperties = Dict[str, str]


def _tags_to_list(tags: Iterable[QualifiableIdentifier]) -> List[List[str]]:
    return [list(tag) for tag in tags]


@dataclass
class DagStyle:
    style_tags: List[QualifiableIdentifier] = field(default_factory=list)
    style_properties: StyleProperties = field(default_factory=dict)

    @classmethod
    def from_style(cls, style: Optional[Style]) -> Optional["DagStyle"]:
        if style is None:
            return None
        return cls(list(style.tag_paths), dict(style.properties))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "style_tags": _tags_to_list(self.style_tags),
            "style_properties": dict(self.style_properties),
        }


@dataclass
class DagNode:
    id: NodeId
    name: str
    style_tags: List[QualifiableIdentifier] = field(default_factory=list)
    style_properties: StyleProperties = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "style_tags": _tags_to_list(self.style_tags),
            "style_properties": dict(self.style_properties),
        }


@dataclass
class DagEdge:
    id: EdgeId
    name: str
    src_node_id: NodeId
    dest_node_id: NodeId
    style_tags: List[QualifiableIdentifier] = field(default_factory=list)
    style_properties: StyleProperties = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "src_node_id": self.src_node_id,
            "dest_node_id": self.dest_node_id,
            "style_tags": _tags_to_list(self.style_tags),
            "style_properties": dict(self.style_properties),
        }


class ScopeMember(Enum):
    VARIABLES = "var_name_to_node_id"
    VARIABLE_STYLES = "var_name_to_style"
    STYLES = "style_name_to_flat_properties"


class Resolution(NamedTuple):
    found: bool
    value: Any = None


NOT_FOUND = Resolution(False)


class Dag:
    """Grafo de um namespace e, simultaneamente, seu escopo lexico."""

    def __init__(
        self,
        dag_id: DagId,
        parent: Optional["Dag"] = None,
        name: str = "",
        dag_style: Optional[DagStyle] = None,
    ) -> None:
        self._id = dag_id
        self._name = name
        self._parent: Optional[Dag] = None
        self.dag_style = dag_style or DagStyle()

        self.nodes: Dict[NodeId, DagNode] = {}
        self.edges: Dict[EdgeId, DagEdge] = {}
        self.var_name_to_node_id: Dict[str, NodeId] = {}
        self.var_name_to_style: Dict[str, Optional[DagStyle]] = {}
        self.style_name_to_flat_properties: Dict[str, StyleProperties] = {}
        self.style_bindings: Dict[str, List[QualifiableIdentifier]] = {}
        self.child_dags: Dict[DagId, Dag] = {}
        self.namespace_name_to_dag_id: Dict[str, DagId] = {}
        self.used_imports: Set[str] = set()

        self._lineage_path = ""
        self._dag_lineage_path = ""
        if parent is not None:
            parent.add_child_dag(self)
        else:
            self._refresh_lineage()

    def __repr__(self) -> str:
        return f"Dag(id={self._id!r}, name={self._name!r})"

    # =========================================================================
    # IDENTIDADE E HIERARQUIA
    # =========================================================================

    @property
    def id(self) -> DagId:
        return self._id

    @id.setter
    def id(self, new_id: DagId) -> None:
        old_id = self._id
        self._id = new_id
        parent = self._parent
        if parent is not None:
            if parent.child_dags.get(old_id) is self:
                del parent.child_dags[old_id]
            parent.child_dags[new_id] = self
            if self._name:
                parent.namespace_name_to_dag_id[self._name] = new_id
        self._refresh_lineage()

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, new_name: str) -> None:
        old_name = self._name
        self._name = new_name
        parent = self._parent
        if parent is None:
            return
        if old_name and parent.namespace_name_to_dag_id.get(old_name) == self._id:
            del parent.namespace_name_to_dag_id[old_name]
        if new_name:
            parent.namespace_name_to_dag_id[new_name] = self._id

    @property
    def parent(self) -> Optional["Dag"]:
        return self._parent

    @parent.setter
    def parent(self, new_parent: Optional["Dag"]) -> None:
        if new_parent is None:
            self._set_parent(None)
        else:
            new_parent.add_child_dag(self)

    def _set_parent(self, new_parent: Optional["Dag"]) -> None:
        old_parent = self._parent
        if old_parent is not None and old_parent is not new_parent:
            logger.debug(
                "Dag %s trocando de pai: %s -> %s",
                self._id,
                old_parent.id,
                new_parent.id if new_parent else None,
            )
            if old_parent.child_dags.get(self._id) is self:
                del old_parent.child_dags[self._id]
            if self._name and old_parent.namespace_name_to_dag_id.get(self._name) == self._id:
                del old_parent.namespace_name_to_dag_id[self._name]
        self._parent = new_parent
        self._refresh_lineage()

    @property
    def lineage_path(self) -> str:
        return self._lineage_path

    @property
    def dag_lineage_path(self) -> str:
        return self._dag_lineage_path

    def _lineage_ids_ascending(self) -> List[DagId]:
        ids: List[DagId] = []
        visited: Set[int] = set()
        current: Optional[Dag] = self
        while current is not None:
            if id(current) in visited:
                logger.warning("Ciclo detectado na linhagem do Dag %s", self._id)
                break
            visited.add(id(current))
            ids.append(current.id)
            current = current.parent
        return ids

    def _compute_lineage(self) -> None:
        ids = self._lineage_ids_ascending()
        ids.pop()  # omite a raiz
        ids.reverse()
        self._lineage_path = "".join("/" + dag_id for dag_id in ids)
        self._dag_lineage_path = "".join("/" + dag_id for dag_id in ids[:-1])

    def _refresh_lineage(self) -> None:
        visited: Set[int] = set()
        pending: List[Dag] = [self]
        while pending:
            dag = pending.pop()
            if id(dag) in visited:
                logger.warning("Ciclo detectado ao atualizar linhagem de %s", dag.id)
                continue
            visited.add(id(dag))
            dag._compute_lineage()
            pending.extend(dag.child_dags.values())

    # =========================================================================
    # MUTACAO
    # =========================================================================

    def add_node(self, node: DagNode) -> None:
        self.nodes[node.id] = node

    def add_edge(self, edge: DagEdge) -> None:
        self.edges[edge.id] = edge

    def add_style_binding(self, keyword: str, style_tags: List[QualifiableIdentifier]) -> None:
        self.style_bindings[keyword] = list(style_tags)

    def add_child_dag(self, child: "Dag") -> None:
        self.child_dags[child.id] = child
        if child.name:
            self.namespace_name_to_dag_id[child.name] = child.id
        child._set_parent(self)

    def add_used_import(self, location: str) -> None:
        self.used_imports.add(location)

    def set_var_node(self, var_name: str, node_id: NodeId) -> None:
        self.var_name_to_node_id[var_name] = node_id

    def set_var_style(self, var_name: str, style: Optional[DagStyle]) -> None:
        self.var_name_to_style[var_name] = style

    def set_style(self, style_name: str, properties: StyleProperties) -> None:
        self.style_name_to_flat_properties[style_name] = properties

    def merge_dag(self, other: "Dag") -> None:
        """Absorve o conteudo de other; em colisao de chave, other vence."""
        for node in other.get_node_list():
            self.add_node(node)
        for edge in other.get_edge_list():
            self.add_edge(edge)
        for style_name, properties in other.style_name_to_flat_properties.items():
            self.set_style(style_name, properties)
        for keyword, tags in other.style_bindings.items():
            self.add_style_binding(keyword, tags)
        for var_name, node_id in other.var_name_to_node_id.items():
            self.set_var_node(var_name, node_id)
        for var_name, style in other.var_name_to_style.items():
            self.set_var_style(var_name, style)
        for child in other.get_child_dags():
            self.add_child_dag(child)
        for location in other.used_imports:
            self.add_used_import(location)

    def clone(self) -> "Dag":
        """Copia estrutural da subarvore, sem pai; ids sao preservados."""
        duplicate = Dag(self._id, name=self._name, dag_style=copy.deepcopy(self.dag_style))
        duplicate.nodes = copy.deepcopy(self.nodes)
        duplicate.edges = copy.deepcopy(self.edges)
        duplicate.var_name_to_node_id = dict(self.var_name_to_node_id)
        duplicate.var_name_to_style = copy.deepcopy(self.var_name_to_style)
        duplicate.style_name_to_flat_properties = copy.deepcopy(
            self.style_name_to_flat_properties
        )
        duplicate.style_bindings = copy.deepcopy(self.style_bindings)
        duplicate.used_imports = set(self.used_imports)
        for child in self.get_child_dags():
            duplicate.add_child_dag(child.clone())
        return duplicate

    # =========================================================================
    # RESOLUCAO DE IDENTIFICADORES
    # =========================================================================

    def _resolve_in_subtree(
        self,
        path: QualifiableIdentifier,
        member: ScopeMember,
    ) -> Resolution:
        if not path:
            return NOT_FOUND
        first, rest = path[0], path[1:]
        if not rest:
            values = getattr(self, member.value)
            if first in values:
                return Resolution(True, values[first])
            return NOT_FOUND
        child_id = self.namespace_name_to_dag_id.get(first)
        child = self.child_dags.get(child_id) if child_id is not None else None
        if child is None:
            return NOT_FOUND
        return child._resolve_in_subtree(rest, member)

    def resolve_qualified_identifier(
        self,
        path: QualifiableIdentifier,
        member: ScopeMember,
    ) -> Resolution:
        """
        Resolve path no escopo atual e, se nao encontrado, nos ancestrais.

        Returns:
            Resolution(True, valor) quando achado (valor pode ser None,
            que interrompe a subida); NOT_FOUND caso contrario.
        """
        path = tuple(path)
        seen: Set[DagId] = set()
        current: Optional[Dag] = self
        while current is not None:
            if current.id in seen:
                logger.warning(
                    "Ciclo detectado resolvendo '%s' a partir de %s", join_path(path), self._id
                )
                return NOT_FOUND
            seen.add(current.id)
            resolution = current._resolve_in_subtree(path, member)
            if resolution.found:
                return resolution
            current = current.parent
        return NOT_FOUND

    def get_var_node(self, path: QualifiableIdentifier) -> Optional[NodeId]:
        return self.resolve_qualified_identifier(path, ScopeMember.VARIABLES).value

    def get_var_style(self, path: QualifiableIdentifier) -> Optional[DagStyle]:
        return self.resolve_qualified_identifier(path, ScopeMember.VARIABLE_STYLES).value

    def get_style(self, path: QualifiableIdentifier) -> Optional[StyleProperties]:
        return self.resolve_qualified_identifier(path, ScopeMember.STYLES).value

    def has_style(self, path: QualifiableIdentifier) -> bool:
        resolution = self.resolve_qualified_identifier(path, ScopeMember.STYLES)
        return resolution.found and resolution.value is not None

    # =========================================================================
    # CONSULTAS E EXPORTACAO
    # =========================================================================

    def get_node_list(self) -> List[DagNode]:
        return list(self.nodes.values())

    def get_edge_list(self) -> List[DagEdge]:
        return list(self.edges.values())

    def get_child_dags(self) -> List["Dag"]:
        return list(self.child_dags.values())

    def get_flattened_styles(self) -> Dict[str, StyleProperties]:
        return self.style_name_to_flat_properties

    def get_style_bindings(self) -> Dict[str, List[QualifiableIdentifier]]:
        return self.style_bindings

    def as_dag_node(self) -> DagNode:
        return DagNode(
            id=self._id,
            name=self._name,
            style_tags=list(self.dag_style.style_tags),
            style_properties=dict(self.dag_style.style_properties),
        )

    def iter_dags(self) -> Iterable["Dag"]:
        """Percorre esta subarvore em pre-ordem."""
        visited: Set[int] = set()
        pending: List[Dag] = [self]
        while pending:
            dag = pending.pop(0)
            if id(dag) in visited:
                continue
            visited.add(id(dag))
            yield dag
            pending[0:0] = dag.get_child_dags()

    def debug_dump_dag(self, level: int = 0) -> str:
        pad = "\t" * level
        child_pad = pad + "\t"
        grandchild_pad = child_pad + "\t"

        def tags_dump(tags: List[QualifiableIdentifier]) -> str:
            if not tags:
                return ""
            return f"\n{grandchild_pad}StyleTags: [{', '.join(join_path(t) for t in tags)}]"

        def properties_dump(properties: StyleProperties) -> str:
            if not properties:
                return ""
            return f"\n{grandchild_pad}StyleProperties: {json.dumps(properties)}"

        def node_name(node_id: NodeId) -> str:
            node = self.nodes.get(node_id)
            return node.name if node else node_id

        result = f"{pad}Dag: {self._name}\n"
        for location in sorted(self.used_imports):
            result += f"{child_pad}Import: {location}\n"
        for node in self.nodes.values():
            result += (
                f"{child_pad}Node: {node.name}"
                + tags_dump(node.style_tags)
                + properties_dump(node.style_properties)
                + "\n"
            )
        for edge in self.edges.values():
            result += (
                f"{child_pad}Edge: {node_name(edge.src_node_id)} -({edge.name})-> "
                f"{node_name(edge.dest_node_id)}"
                + tags_dump(edge.style_tags)
                + properties_dump(edge.style_properties)
                + "\n"
            )
        for style_name, properties in self.style_name_to_flat_properties.items():
            result += f"{child_pad}Style: {style_name}" + properties_dump(properties) + "\n"
        for keyword, tags in self.style_bindings.items():
            result += f"{child_pad}StyleBinding: {keyword}" + tags_dump(tags) + "\n"
        for child in self.child_dags.values():
            result += child.debug_dump_dag(level + 1)
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self._id,
            "name": self._name,
            "lineage_path": self._lineage_path,
            "dag_lineage_path": self._dag_lineage_path,
            "dag_style": self.dag_style.to_dict(),
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges.values()],
            "styles": {name: dict(props) for name, props in self.style_name_to_flat_properties.items()},
            "style_bindings": {
                keyword: _tags_to_list(tags) for keyword, tags in self.style_bindings.items()
            },
            "variables": dict(self.var_name_to_node_id),
            "used_imports": sorted(self.used_imports),
            "children": [child.to_dict() for child in self.child_dags.values()],
        }
