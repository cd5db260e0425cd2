"""
lowering.py - Compilacao da AST fiz para a arvore de Dags

Proposito:
    Percorrer uma Recipe em ordem de fonte e popular um Dag por namespace:
    chamadas viram nos, argumentos viram arestas de entrada, atribuicoes
    ligam variaveis a nos, estilos nomeados sao achatados e importacoes
    sao resolvidas pelo ImportCache.

Componentes principais:
    - DagLowerer: estado de uma compilacao (diagnosticos, fabrica de ids,
      cadeia de importacoes ativa)
    - make_dag: ponto de entrada; trata a Recipe como namespace anonimo

Dependencias criticas:
    - fizgraph.semantic.dag: Dag, DagNode, DagEdge, DagStyle
    - fizgraph.semantic.imports: ImportCache (apenas para tipagem)
    - uuid: ids de nos, arestas e Dags
    - copy: aliases herdam uma copia do estilo da variavel referida

Exemplo de uso:
    dag, errors = await make_dag(recipe, ImportCache())
    print(dag.debug_dump_dag())

Notas de implementacao:
    - Instrucoes sao processadas estritamente em sequencia; importacoes
      nunca sao antecipadas nem paralelizadas.
    - Referencias nao resolvidas geram diagnostico e a aresta e omitida.
    - Falhas de importacao sao isoladas por instrucao.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, FrozenSet, List, Optional, Tuple

from fizgraph.ast.nodes import (
    Assignment,
    Call,
    Import,
    NamedStyle,
    Namespace,
    QualifiedVariable,
    Recipe,
    Statement,
    StatementList,
    Style,
    StyleBinding,
    Value,
)
from fizgraph.ast.results import (
    Diagnostic,
    Diagnostics,
    ImportFailed,
    IncompleteAssignment,
    UndefinedAliasTarget,
    UndefinedStyleTag,
    UndefinedVariable,
    UnknownNodeKind,
    position_of,
)
from fizgraph.semantic.dag import Dag, DagEdge, DagId, DagNode, DagStyle, NodeId

if TYPE_CHECKING:
    from fizgraph.semantic.imports import ImportCache

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_uuid() -> str:
    return str(uuid.uuid4())


@dataclass
class IncomingEdge:
    src_node_id: NodeId
    name: str
    style: Optional[DagStyle] = None


class DagLowerer:
    """Converte namespaces da AST em Dags, acumulando diagnosticos."""

    def __init__(
        self,
        import_cache: Optional["ImportCache"] = None,
        seen_imports: FrozenSet[str] = frozenset(),
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self.import_cache = import_cache
        self.seen_imports = frozenset(seen_imports)
        self.new_id = id_factory or new_uuid
        self.diagnostics = Diagnostics()

    def _report(self, diagnostic: Diagnostic) -> None:
        logger.debug(
            "Diagnostico (%s) em %s: %s",
            diagnostic.source.value,
            diagnostic.position,
            diagnostic.message,
        )
        self.diagnostics.add(diagnostic)

    # =========================================================================
    # NAMESPACES
    # =========================================================================

    async def lower_namespace(
        self,
        namespace: Namespace,
        parent: Optional[Dag] = None,
        dag_id: Optional[DagId] = None,
    ) -> Dag:
        dag = Dag(
            dag_id or self.new_id(),
            parent=parent,
            name=namespace.name,
            dag_style=DagStyle.from_style(namespace.styling),
        )
        self._check_style_tags(namespace.styling, dag)
        for statement in namespace.statements:
            await self._lower_statement(statement, dag)
        return dag

    async def _lower_nested_namespace(self, namespace: Namespace, dag: Dag) -> DagId:
        child_id = self.new_id()
        await self.lower_namespace(namespace, parent=dag, dag_id=child_id)
        self._add_incoming_edges(self._edge_sources(namespace.args, dag), child_id, dag)
        return child_id

    async def _lower_statement(self, statement: Statement, dag: Dag) -> None:
        match statement:
            case Call():
                self._lower_call(statement, dag)
            case Assignment():
                await self._lower_assignment(statement, dag)
            case NamedStyle():
                self._lower_named_style(statement, dag)
            case StyleBinding():
                dag.add_style_binding(statement.keyword, statement.tag_paths)
            case QualifiedVariable():
                pass
            case Namespace():
                await self._lower_nested_namespace(statement, dag)
            case Import():
                await self._lower_bare_import(statement, dag)
            case _:
                self._report(UnknownNodeKind(position_of(statement), type(statement).__name__))

    # =========================================================================
    # CHAMADAS E ARESTAS
    # =========================================================================

    def _lower_call(self, call: Call, dag: Dag) -> NodeId:
        node_id = self.new_id()
        style = DagStyle.from_style(call.styling) or DagStyle()
        self._check_style_tags(call.styling, dag)
        dag.add_node(DagNode(node_id, call.name, style.style_tags, style.style_properties))
        self._add_incoming_edges(self._edge_sources(call.args, dag), node_id, dag)
        return node_id

    def _edge_sources(self, args: List[Value], dag: Dag) -> List[IncomingEdge]:
        sources: List[IncomingEdge] = []
        for arg in args:
            match arg:
                case Call():
                    sources.append(IncomingEdge(self._lower_call(arg, dag), ""))
                case QualifiedVariable(path=path):
                    node_id = dag.get_var_node(path)
                    if not node_id:
                        self._report(UndefinedVariable(position_of(arg), path))
                        continue
                    sources.append(IncomingEdge(node_id, arg.last_segment, dag.get_var_style(path)))
                case _:
                    self._report(UnknownNodeKind(position_of(arg), type(arg).__name__))
        return sources

    def _add_incoming_edges(
        self,
        sources: List[IncomingEdge],
        dest_id: str,
        dag: Dag,
    ) -> None:
        for source in sources:
            style = source.style or DagStyle()
            dag.add_edge(
                DagEdge(
                    id=self.new_id(),
                    name=source.name,
                    src_node_id=source.src_node_id,
                    dest_node_id=dest_id,
                    style_tags=list(style.style_tags),
                    style_properties=dict(style.style_properties),
                )
            )

    # =========================================================================
    # ATRIBUICOES
    # =========================================================================

    async def _lower_assignment(self, statement: Assignment, dag: Dag) -> None:
        position = position_of(statement)
        if not statement.lhs:
            self._report(IncompleteAssignment(position, "left"))
        if statement.rhs is None:
            self._report(IncompleteAssignment(position, "right"))
            return

        for variable in statement.lhs:
            self._check_style_tags(variable.styling, dag)

        if isinstance(statement.rhs, QualifiedVariable):
            self._lower_alias(statement, statement.rhs, dag)
            return

        node_id = await self._lower_rhs(statement.rhs, dag)
        if node_id is None:
            return
        for variable in statement.lhs:
            dag.set_var_node(variable.name, node_id)
            dag.set_var_style(variable.name, DagStyle.from_style(variable.styling))

    def _lower_alias(self, statement: Assignment, referent: QualifiedVariable, dag: Dag) -> None:
        node_id = dag.get_var_node(referent.path)
        if not node_id:
            names = ", ".join(variable.name for variable in statement.lhs)
            self._report(UndefinedAliasTarget(position_of(referent), referent.path, names))
            return
        referent_style = dag.get_var_style(referent.path)
        for variable in statement.lhs:
            dag.set_var_node(variable.name, node_id)
            if variable.styling is None:
                dag.set_var_style(variable.name, copy.deepcopy(referent_style))
            else:
                dag.set_var_style(variable.name, DagStyle.from_style(variable.styling))

    async def _lower_rhs(self, rhs: Statement, dag: Dag) -> Optional[str]:
        match rhs:
            case Call():
                return self._lower_call(rhs, dag)
            case Namespace():
                return await self._lower_nested_namespace(rhs, dag)
            case Import():
                return await self._attach_import(rhs, dag)
            case _:
                self._report(UnknownNodeKind(position_of(rhs), type(rhs).__name__))
                return None

    # =========================================================================
    # ESTILOS
    # =========================================================================

    def _lower_named_style(self, statement: NamedStyle, dag: Dag) -> None:
        flat: dict = {}
        for tag in statement.style.style_tags:
            referent = dag.get_style(tag.path)
            if referent is None:
                self._report(UndefinedStyleTag(position_of(tag), tag.path))
                continue
            flat.update(referent)
        # propriedades locais sobrescrevem as referenciadas
        flat.update(statement.style.properties)
        dag.set_style(statement.name, flat)

    def _check_style_tags(self, style: Optional[Style], dag: Dag) -> None:
        if style is None:
            return
        for tag in style.style_tags:
            if not dag.has_style(tag.path):
                self._report(UndefinedStyleTag(position_of(tag), tag.path))

    # =========================================================================
    # IMPORTACOES
    # =========================================================================

    async def _fetch_import(self, statement: Import, dag: Dag) -> Optional[Dag]:
        dag.add_used_import(statement.location)
        if self.import_cache is None:
            self._report(
                ImportFailed(position_of(statement), statement.location, "no import cache configured")
            )
            return None
        try:
            package = await self.import_cache.get_package_dag(
                statement.location, self.seen_imports
            )
        except Exception as exc:
            self._report(ImportFailed(position_of(statement), statement.location, str(exc)))
            return None
        return package.clone()

    async def _attach_import(self, statement: Import, dag: Dag) -> Optional[DagId]:
        package = await self._fetch_import(statement, dag)
        if package is None:
            return None
        package.id = self.new_id()
        package.name = statement.alias or ""
        dag.add_child_dag(package)
        return package.id

    async def _lower_bare_import(self, statement: Import, dag: Dag) -> None:
        if statement.alias:
            await self._attach_import(statement, dag)
            return
        package = await self._fetch_import(statement, dag)
        if package is not None:
            dag.merge_dag(package)


async def make_dag(
    recipe: Recipe,
    import_cache: Optional["ImportCache"] = None,
    seen_imports: FrozenSet[str] = frozenset(),
    id_factory: Optional[IdFactory] = None,
) -> Tuple[Dag, List[Diagnostic]]:
    """Compila a Recipe como namespace anonimo com um id de raiz novo."""
    lowerer = DagLowerer(import_cache, seen_imports, id_factory)
    root = Namespace("", StatementList(list(recipe.statements)), position=recipe.position)
    dag = await lowerer.lower_namespace(root)
    return dag, list(lowerer.diagnostics)
