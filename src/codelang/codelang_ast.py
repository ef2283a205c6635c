"""
Defines the abstract syntax tree (AST) node structure for the CODE language.

Classes:
    ASTNode:
        A node of the syntax tree built by the parser and walked by the evaluator.
        The set of node kinds is closed: constructing a node with an unknown kind
        raises `ValueError`.

    ASTDict:
        TypedDict representation for serializing ASTNode instances to plain Python
        dictionaries, suitable for JSON output or debugging.

Node kinds and how their fields are used:

    Statements
        program         children = top-level statements
        declaration     type_ = declared type, children = declarator nodes
        declarator      value = variable name, type_ = declared type,
                        children = [initializer] or []
        assign          value = target name, op = "=", "+=", ..., children = [value]
        post_increment  value = variable name
        post_decrement  value = variable name
        if              value = condition, children = then branch,
                        else_children = else branch
        while           value = condition, children = body
        output          children = expressions, displayed left to right
        input           children = variable nodes, one input line each
        break, continue, empty

    Expressions
        literal         value = codelang_values.Value
        variable        value = variable name
        binary          op = "+", "-", "*", "/", "%", "&", ">", "<", ">=", "<=",
                        "==", "<>", children = [left, right]
        unary           op = "+", "-", "NOT", "++", "--", children = [operand]
        logical         op = "AND" or "OR", children = [left, right]
        assign_expr     value = target name, op = assignment operator,
                        children = [value]
        grouping        children = [inner]
        call            value = "CEIL", "FLOOR", "TOINT", "TOFLOAT", "TOSTRING"
                        or "TYPE", children = [argument]

Every node records the source line (and column) it starts on.
"""

from typing import Any, TypedDict, Union

from codelang.codelang_values import Value

STATEMENT_KINDS: frozenset[str] = frozenset(
    {
        "program",
        "declaration",
        "declarator",
        "assign",
        "post_increment",
        "post_decrement",
        "if",
        "while",
        "output",
        "input",
        "break",
        "continue",
        "empty",
    }
)

EXPRESSION_KINDS: frozenset[str] = frozenset(
    {
        "literal",
        "variable",
        "binary",
        "unary",
        "logical",
        "assign_expr",
        "grouping",
        "call",
    }
)

NODE_KINDS: frozenset[str] = STATEMENT_KINDS | EXPRESSION_KINDS


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of an ASTNode used for serialization.

    Fields:
        kind (str): The node kind (e.g., "assign", "binary", "if").
        value (Any): Name, nested ASTDict, or a serialized runtime value.
        op (str | None): Operator for binary, unary, logical and assignment nodes.
        type (str | None): Declared type for declarations.
        line (int): Line number in the source code where the node originates.
        col (int): Column number in the source code where the node originates.
        children (list[ASTDict]): Primary child nodes.
        else_children (list[ASTDict]): Else branch of an `if`.
    """

    kind: str
    value: Any
    op: str | None
    type: str | None
    line: int
    col: int
    children: list["ASTDict"]
    else_children: list["ASTDict"]


class ASTNode:
    """
    Represents a node in the abstract syntax tree for the CODE language.

    Args:
        kind (str): One of `NODE_KINDS`.
        value (str | ASTNode | Value, optional): Name, condition node or literal value.
        children (list[ASTNode], optional): Primary child nodes.
        line (int): Source line number (default is 0).
        col (int): Source column number (default is 0).
        type_ (str, optional): Declared type for declaration nodes.
        op (str, optional): Operator spelling for operator and assignment nodes.

    Raises:
        ValueError: If `kind` is not a known node kind.
    """

    def __init__(
        self,
        kind: str,
        value: Union[str, "ASTNode", Value] | None = None,
        children: list["ASTNode"] | None = None,
        line: int = 0,
        col: int = 0,
        type_: str | None = None,
        op: str | None = None,
    ):
        if kind not in NODE_KINDS:
            raise ValueError(f"Unknown AST node kind: {kind!r}")
        self.kind = kind
        self.value = value
        self.children: list["ASTNode"] = children or []
        self.line = line
        self.col = col
        self.type = type_
        self.op = op
        self.else_children: list["ASTNode"] = []

    def __repr__(self) -> str:
        parts = [f"{self.kind}"]
        if self.value is not None:
            parts.append(f"value={repr(self.value)}")
        if self.op is not None:
            parts.append(f"op={self.op}")
        if self.type is not None:
            parts.append(f"type_={self.type}")
        if self.children:
            preview = ", ".join(repr(c) for c in self.children[:3])
            if len(self.children) > 3:
                preview += ", ..."
            parts.append(f"children=[{preview}]")
        if self.else_children:
            preview = ", ".join(repr(c) for c in self.else_children[:3])
            if len(self.else_children) > 3:
                preview += ", ..."
            parts.append(f"else_children=[{preview}]")
        return f"ASTNode({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ASTNode):
            return False
        return (
            self.kind == other.kind
            and self.value == other.value
            and self.op == other.op
            and self.line == other.line
            and self.col == other.col
            and self.type == other.type
            and self.children == other.children
            and self.else_children == other.else_children
        )

    def to_dict(self) -> ASTDict:
        val: Any = self.value
        if isinstance(val, ASTNode):
            val = val.to_dict()
        elif isinstance(val, Value):
            val = {"type": val.type, "data": val.data}

        return {
            "kind": self.kind,
            "value": val,
            "op": self.op,
            "type": self.type,
            "line": self.line,
            "col": self.col,
            "children": [c.to_dict() for c in self.children],
            "else_children": [c.to_dict() for c in self.else_children],
        }


__all__ = ["ASTDict", "ASTNode", "EXPRESSION_KINDS", "NODE_KINDS", "STATEMENT_KINDS"]
