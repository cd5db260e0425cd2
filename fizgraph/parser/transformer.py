"""
transformer.py - Conversao de parse tree para AST fiz

Proposito:
    Transformar a arvore concreta do Lark em nos tipados da AST fiz,
    anexando a faixa de bytes de cada producao como Position.

Componentes principais:
    - RecipeBuilder: Transformer principal do Lark
    - BuildResult: AST resultante mais diagnosticos acumulados
    - Helpers para normalizacao de valores de estilo

Dependencias criticas:
    - lark: Transformer, Token e metadados de parsing
    - fizgraph.ast.nodes: definicoes dos nos da AST

Exemplo de uso:
    from fizgraph.parser.lexer import parse_string
    from fizgraph.parser.transformer import RecipeBuilder
    result = RecipeBuilder.build(parse_string(text), text)

Notas de implementacao:
    - Producoes desconhecidas geram UnknownNodeKind e sao descartadas.
    - O texto de cada token e obtido fatiando o fonte pelos offsets.
    - Strings soltas num bloco de estilo viram a propriedade "description".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from lark import Token, Transformer, Tree, v_args

from fizgraph.ast.nodes import (
    Assignment,
    Call,
    Import,
    LocalVariable,
    NamedStyle,
    Namespace,
    Position,
    QualifiedVariable,
    Recipe,
    StatementList,
    Style,
    StyleBinding,
    StyleTag,
    ValueList,
)
from fizgraph.ast.results import DEFAULT_POSITION, Diagnostic, Diagnostics, UnknownNodeKind
from fizgraph.constants import DESCRIPTION_PROPERTY


@dataclass
class BuildResult:
    ast: Recipe
    errors: List[Diagnostic] = field(default_factory=list)


@dataclass
class _Description:
    text: str


def _position(meta: Any) -> Optional[Position]:
    start = getattr(meta, "start_pos", None)
    end = getattr(meta, "end_pos", None)
    if start is None or end is None:
        return None
    return Position(start, end)


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _clean_style_value(value: str) -> str:
    return _strip_quotes(value).replace("\\n", "\n")


class RecipeBuilder(Transformer):
    """Constroi a AST (Recipe) a partir da arvore produzida por fiz.lark."""

    def __init__(self, text: str = ""):
        super().__init__()
        self.text = text
        self.diagnostics = Diagnostics()

    @classmethod
    def build(cls, tree: Tree, text: str) -> BuildResult:
        builder = cls(text)
        ast = builder.transform(tree)
        if not isinstance(ast, Recipe):
            builder.diagnostics.add(UnknownNodeKind(DEFAULT_POSITION, str(tree.data)))
            ast = Recipe(position=Position(0, len(text)))
        return BuildResult(ast=ast, errors=list(builder.diagnostics))

    def _slice(self, token: Token) -> str:
        if self.text and token.start_pos is not None and token.end_pos is not None:
            return self.text[token.start_pos:token.end_pos]
        return str(token)

    def __default__(self, data: Any, children: List[Any], meta: Any) -> None:
        self.diagnostics.add(UnknownNodeKind(_position(meta) or DEFAULT_POSITION, str(data)))
        return None

    # =========================================================================
    # PROGRAMA E CONTEINERES
    # =========================================================================

    @v_args(meta=True)
    def recipe(self, meta: Any, children: List[Any]) -> Recipe:
        statements = [child for child in children if child is not None]
        return Recipe(statements, position=_position(meta) or Position(0, len(self.text)))

    @v_args(meta=True)
    def statement_list(self, meta: Any, children: List[Any]) -> StatementList:
        statements = [child for child in children if child is not None]
        return StatementList(statements, position=_position(meta))

    @v_args(meta=True)
    def arg_list(self, meta: Any, children: List[Any]) -> ValueList:
        values = [child for child in children if child is not None]
        return ValueList(values, position=_position(meta))

    # =========================================================================
    # INSTRUCOES
    # =========================================================================

    @v_args(meta=True)
    def call(self, meta: Any, children: List[Any]) -> Call:
        name = self._slice(children[0])
        args: List[Any] = []
        styling: Optional[Style] = None
        for child in children[1:]:
            if isinstance(child, ValueList):
                args = child.values
            elif isinstance(child, Style):
                styling = child
        return Call(name, args, styling, position=_position(meta))

    @v_args(meta=True)
    def assignment(self, meta: Any, children: List[Any]) -> Assignment:
        lhs = [child for child in children if isinstance(child, LocalVariable)]
        rhs = None
        for child in children:
            if isinstance(child, (Call, QualifiedVariable, Namespace, Import)):
                rhs = child
        return Assignment(lhs, rhs, position=_position(meta))

    @v_args(meta=True)
    def lhs_variable(self, meta: Any, children: List[Any]) -> LocalVariable:
        name = self._slice(children[0])
        styling = next((c for c in children[1:] if isinstance(c, Style)), None)
        return LocalVariable(name, styling, position=_position(meta))

    @v_args(meta=True)
    def rhs_variable(self, meta: Any, children: List[Any]) -> QualifiedVariable:
        return QualifiedVariable(children[0], position=_position(meta))

    @v_args(meta=True)
    def qualifiable_identifier(self, meta: Any, children: List[Token]) -> Tuple[str, ...]:
        return tuple(self._slice(token) for token in children)

    @v_args(meta=True)
    def namespace(self, meta: Any, children: List[Any]) -> Namespace:
        name = ""
        statements = StatementList()
        args = ValueList()
        styling: Optional[Style] = None
        for child in children:
            if isinstance(child, Token):
                name = self._slice(child)
            elif isinstance(child, StatementList):
                statements = child
            elif isinstance(child, ValueList):
                args = child
            elif isinstance(child, Style):
                styling = child
        return Namespace(name, statements, args, styling, position=_position(meta))

    @v_args(meta=True)
    def package_import(self, meta: Any, children: List[Token]) -> Import:
        alias = None
        literals: List[str] = []
        for token in children:
            if token.type == "IDENTIFIER":
                alias = self._slice(token)
            else:
                literals.append(_strip_quotes(self._slice(token)))
        return Import("\n".join(literals), alias, position=_position(meta))

    @v_args(meta=True)
    def style_tag_declaration(self, meta: Any, children: List[Any]) -> NamedStyle:
        name = self._slice(children[0])
        style = next((c for c in children[1:] if isinstance(c, Style)), None)
        return NamedStyle(name, style or Style(), position=_position(meta))

    @v_args(meta=True)
    def style_binding(self, meta: Any, children: List[Any]) -> StyleBinding:
        keyword = self._slice(children[0])
        tags: List[StyleTag] = []
        for child in children[1:]:
            if isinstance(child, list):
                tags = child
        return StyleBinding(keyword, tags, position=_position(meta))

    # =========================================================================
    # ESTILOS
    # =========================================================================

    @v_args(meta=True)
    def style_arg_list(self, meta: Any, children: List[Any]) -> Style:
        properties: Dict[str, str] = {}
        tags: List[StyleTag] = []
        descriptions: List[str] = []
        for child in children:
            if isinstance(child, StyleTag):
                tags.append(child)
            elif isinstance(child, _Description):
                descriptions.append(child.text)
            elif isinstance(child, tuple):
                key, value = child
                properties[key] = value
        if descriptions:
            properties[DESCRIPTION_PROPERTY] = "\n".join(descriptions)
        return Style(properties, tags, position=_position(meta))

    @v_args(meta=True)
    def style_tag_list(self, meta: Any, children: List[Any]) -> List[StyleTag]:
        return [child for child in children if isinstance(child, StyleTag)]

    @v_args(meta=True)
    def style_declaration(self, meta: Any, children: List[Any]) -> Tuple[str, str]:
        key = self._slice(children[0])
        return key, ",".join(children[1:])

    @v_args(meta=True)
    def style_value(self, meta: Any, children: List[Token]) -> str:
        return _clean_style_value(self._slice(children[0]))

    @v_args(meta=True)
    def style_tag(self, meta: Any, children: List[Any]) -> StyleTag:
        return StyleTag(children[0], position=_position(meta))

    @v_args(meta=True)
    def description(self, meta: Any, children: List[Token]) -> _Description:
        return _Description(_clean_style_value(self._slice(children[0])))
