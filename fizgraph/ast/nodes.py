"""
nodes.py - Dataclasses da arvore de instrucoes (AST) do compilador fiz

Proposito:
    Definir os nos tipados que representam um programa fiz (recipe).
    Cada no guarda sua faixa de origem (Position) para diagnosticos.

Componentes principais:
    - Nos de instrucao: Call, Assignment, NamedStyle, StyleBinding, Namespace, Import
    - Nos de valor: QualifiedVariable, LocalVariable
    - Estilo: Style, StyleTag
    - Conteineres: ValueList, StatementList, Recipe

Dependencias criticas:
    - dataclasses: estruturacao dos nos
    - enum: NodeType para despacho e serializacao

Exemplo de uso:
    from fizgraph.ast.nodes import Call, QualifiedVariable, Recipe
    recipe = Recipe([Call("g", [QualifiedVariable(("x",))])])
    print(recipe.debug_dump_tree())

Notas de implementacao:
    - children() devolve exatamente os sub-nos possuidos pelo no.
    - Nos sao dataclasses congeladas; apenas clear_positions() altera
      position, para permitir comparar arvores estruturalmente.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

QualifiableIdentifier = Tuple[str, ...]


class NodeType(Enum):
    CALL = "Call"
    ASSIGNMENT = "Assignment"
    LOCAL_VARIABLE = "LocalVariable"
    QUALIFIED_VARIABLE = "QualifiedVariable"
    STYLE = "Style"
    STYLE_TAG = "StyleTag"
    NAMED_STYLE = "NamedStyle"
    STYLE_BINDING = "StyleBinding"
    NAMESPACE = "Namespace"
    IMPORT = "Import"
    VALUE_LIST = "ValueList"
    STATEMENT_LIST = "StatementList"
    RECIPE = "Recipe"


@dataclass(frozen=True)
class Position:
    """Faixa [start, end) de caracteres no texto fonte."""

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"

    def to_dict(self) -> Dict[str, int]:
        return {"from": self.start, "to": self.end}


def join_path(path: QualifiableIdentifier) -> str:
    return ".".join(path)


@dataclass(frozen=True)
class TreeNode:
    position: Optional[Position] = field(default=None, kw_only=True)

    NODE_TYPE: ClassVar[NodeType]

    @property
    def node_type(self) -> NodeType:
        return self.NODE_TYPE

    def children(self) -> List["TreeNode"]:
        return []

    def debug_dump(self) -> str:
        return f"{self.NODE_TYPE.value}:"

    def debug_dump_tree(self) -> str:
        def _dump(node: TreeNode, level: int) -> str:
            text = f"{node.debug_dump()}\n"
            for child in node.children():
                text += "\t" * (level + 1) + _dump(child, level + 1)
            return text

        return _dump(self, 0)

    def clear_positions(self) -> None:
        object.__setattr__(self, "position", None)
        for child in self.children():
            child.clear_positions()

    def _position_dict(self) -> Optional[Dict[str, int]]:
        return self.position.to_dict() if self.position else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "children": [child.to_dict() for child in self.children()],
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class StyleTag(TreeNode):
    path: QualifiableIdentifier

    NODE_TYPE: ClassVar[NodeType] = NodeType.STYLE_TAG

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(self.path))

    def debug_dump(self) -> str:
        return "StyleTag: " + join_path(self.path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "path": list(self.path),
            "position": self._position_dict(),
        }


def _tags_repr(tags: List[StyleTag]) -> str:
    return ", ".join(join_path(tag.path) for tag in tags)


@dataclass(frozen=True)
class Style(TreeNode):
    properties: Dict[str, str] = field(default_factory=dict)
    style_tags: List[StyleTag] = field(default_factory=list)

    NODE_TYPE: ClassVar[NodeType] = NodeType.STYLE

    @property
    def tag_paths(self) -> List[QualifiableIdentifier]:
        return [tag.path for tag in self.style_tags]

    def children(self) -> List[TreeNode]:
        return list(self.style_tags)

    def debug_dump(self) -> str:
        return (
            f"StyleTagList: [{_tags_repr(self.style_tags)}] "
            f"StyleKeyValueMap: {json.dumps(self.properties)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "properties": dict(self.properties),
            "style_tags": [tag.to_dict() for tag in self.style_tags],
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class QualifiedVariable(TreeNode):
    path: QualifiableIdentifier

    NODE_TYPE: ClassVar[NodeType] = NodeType.QUALIFIED_VARIABLE

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(self.path))

    @property
    def last_segment(self) -> str:
        return self.path[-1] if self.path else ""

    def debug_dump(self) -> str:
        return "QualifiedVariable: " + join_path(self.path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "path": list(self.path),
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class LocalVariable(TreeNode):
    name: str
    styling: Optional[Style] = None

    NODE_TYPE: ClassVar[NodeType] = NodeType.LOCAL_VARIABLE

    def children(self) -> List[TreeNode]:
        return [self.styling] if self.styling else []

    def debug_dump(self) -> str:
        return "LocalVariable: " + self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "name": self.name,
            "styling": self.styling.to_dict() if self.styling else None,
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class Call(TreeNode):
    name: str
    args: List["Value"] = field(default_factory=list)
    styling: Optional[Style] = None

    NODE_TYPE: ClassVar[NodeType] = NodeType.CALL

    def children(self) -> List[TreeNode]:
        nodes: List[TreeNode] = list(self.args)
        if self.styling:
            nodes.append(self.styling)
        return nodes

    def debug_dump(self) -> str:
        return "Call: " + self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "name": self.name,
            "args": [arg.to_dict() for arg in self.args],
            "styling": self.styling.to_dict() if self.styling else None,
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class ValueList(TreeNode):
    values: List["Value"] = field(default_factory=list)

    NODE_TYPE: ClassVar[NodeType] = NodeType.VALUE_LIST

    def children(self) -> List[TreeNode]:
        return list(self.values)

    def __iter__(self):
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class StatementList(TreeNode):
    statements: List["Statement"] = field(default_factory=list)

    NODE_TYPE: ClassVar[NodeType] = NodeType.STATEMENT_LIST

    def children(self) -> List[TreeNode]:
        return list(self.statements)

    def __iter__(self):
        return iter(self.statements)

    def __len__(self) -> int:
        return len(self.statements)


@dataclass(frozen=True)
class Namespace(TreeNode):
    name: str = ""
    statement_list: StatementList = field(default_factory=StatementList)
    arg_list: ValueList = field(default_factory=ValueList)
    styling: Optional[Style] = None

    NODE_TYPE: ClassVar[NodeType] = NodeType.NAMESPACE

    def __post_init__(self) -> None:
        # Aceita listas simples por conveniencia
        if isinstance(self.statement_list, list):
            object.__setattr__(self, "statement_list", StatementList(self.statement_list))
        if isinstance(self.arg_list, list):
            object.__setattr__(self, "arg_list", ValueList(self.arg_list))

    @property
    def statements(self) -> List["Statement"]:
        return self.statement_list.statements

    @property
    def args(self) -> List["Value"]:
        return self.arg_list.values

    def children(self) -> List[TreeNode]:
        nodes: List[TreeNode] = [self.statement_list, self.arg_list]
        if self.styling:
            nodes.append(self.styling)
        return nodes

    def debug_dump(self) -> str:
        return "Namespace: " + self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "name": self.name,
            "statements": [stmt.to_dict() for stmt in self.statements],
            "args": [arg.to_dict() for arg in self.args],
            "styling": self.styling.to_dict() if self.styling else None,
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class Import(TreeNode):
    location: str
    alias: Optional[str] = None

    NODE_TYPE: ClassVar[NodeType] = NodeType.IMPORT

    def __post_init__(self) -> None:
        if self.alias == "":
            object.__setattr__(self, "alias", None)

    def debug_dump(self) -> str:
        alias = self.alias + " " if self.alias else ""
        return "Import: " + alias + self.location

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "location": self.location,
            "alias": self.alias,
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class Assignment(TreeNode):
    lhs: List[LocalVariable] = field(default_factory=list)
    rhs: Optional[Union[Call, QualifiedVariable, Namespace, Import]] = None

    NODE_TYPE: ClassVar[NodeType] = NodeType.ASSIGNMENT

    @property
    def is_alias(self) -> bool:
        return isinstance(self.rhs, QualifiedVariable)

    def children(self) -> List[TreeNode]:
        nodes: List[TreeNode] = list(self.lhs)
        if self.rhs:
            nodes.append(self.rhs)
        return nodes

    def debug_dump(self) -> str:
        return "Alias:" if self.is_alias else "Assignment:"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "lhs": [var.to_dict() for var in self.lhs],
            "rhs": self.rhs.to_dict() if self.rhs else None,
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class NamedStyle(TreeNode):
    name: str = ""
    style: Style = field(default_factory=Style)

    NODE_TYPE: ClassVar[NodeType] = NodeType.NAMED_STYLE

    def children(self) -> List[TreeNode]:
        return [self.style]

    def debug_dump(self) -> str:
        return "StyleName: " + self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "name": self.name,
            "style": self.style.to_dict(),
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class StyleBinding(TreeNode):
    keyword: str = ""
    style_tags: List[StyleTag] = field(default_factory=list)

    NODE_TYPE: ClassVar[NodeType] = NodeType.STYLE_BINDING

    @property
    def tag_paths(self) -> List[QualifiableIdentifier]:
        return [tag.path for tag in self.style_tags]

    def children(self) -> List[TreeNode]:
        return list(self.style_tags)

    def debug_dump(self) -> str:
        return f"StyleBinding: {self.keyword} StyleTagList: [{_tags_repr(self.style_tags)}]"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.NODE_TYPE.value,
            "keyword": self.keyword,
            "style_tags": [tag.to_dict() for tag in self.style_tags],
            "position": self._position_dict(),
        }


@dataclass(frozen=True)
class Recipe(TreeNode):
    statements: List["Statement"] = field(default_factory=list)

    NODE_TYPE: ClassVar[NodeType] = NodeType.RECIPE

    def children(self) -> List[TreeNode]:
        return list(self.statements)

    def debug_dump(self) -> str:
        return "Recipe:"


Value = Union[Call, QualifiedVariable]
Statement = Union[
    Call,
    QualifiedVariable,
    Assignment,
    NamedStyle,
    StyleBinding,
    Namespace,
    Import,
]
