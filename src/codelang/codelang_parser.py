"""
CODE Language Parser

Parses CODE language tokens into an abstract syntax tree.

This module implements a recursive-descent parser with one token of lookahead
that transforms the flat token list produced by `codelang_lexer.tokenize` into a
validated tree of `ASTNode` instances rooted at a `program` node. It also
enforces the rules a pure grammar cannot express.

Supported Constructs
--------------------
- Expressions, from lowest to highest precedence:
    * assignment `=`, `+=`, `-=`, `*=`, `/=`, `%=` (right-associative)
    * `OR`, then `AND`
    * equality `==`, `<>`
    * relational `>`, `<`, `>=`, `<=`
    * additive `+`, `-`, `&` (concatenation, only inside `DISPLAY`)
    * multiplicative `*`, `/`, `%`
    * prefix `+`, `-`, `NOT`
    * literals, `PI`, variables, postfix `x++`/`x--`, built-in calls
      (`CEIL`, `FLOOR`, `TOINT`, `TOFLOAT`, `TOSTRING`, `TYPE`), parentheses

- Statements:
    * Declarations: `INT x, y = 5`
    * Assignments: `x = 5`, `x += 2`, `x = y = 4`
    * Postfix: `x++`, `x--`
    * Control flow: `IF (...) BEGIN IF ... END IF ELSE ...`, `WHILE (...) BEGIN WHILE ... END WHILE`
    * I/O: `DISPLAY: a & b & $`, `SCAN: a, b`
    * Loop control: `BREAK`, `CONTINUE`

Parser Behavior
---------------
- The program must hold exactly one `BEGIN CODE` and one `END CODE`, in that order,
  with nothing but line breaks outside them.
- Declarations are only legal at the top of the program or of a block, before the
  first other statement at that level.
- Names are declared once, declared before use, and never reserved words.
- `BREAK`/`CONTINUE` must be nested inside a `WHILE` body.
- Plain `=` is rejected inside an `IF`/`WHILE` condition.
- `BOOL` variables only take the string literals "TRUE"/"FALSE"; `CHAR`
  variables never take a double-quoted string.
- Integer literals must fit in 32 bits. A `-` written directly before one is
  part of the literal, so `-2147483648` is accepted.

Raises
------
ParseError
    On the first violation, carrying the offending line. There is no recovery.
"""

from __future__ import annotations

import logging

from codelang.codelang_ast import ASTNode
from codelang.codelang_constants import (
    assignment_ops,
    binary_ops,
    block_end_tokens,
    function_tokens,
    keywords,
    type_tokens,
)
from codelang.codelang_errors import ParseError
from codelang.codelang_lexer import Token
from codelang.codelang_values import INT32_MAX, INT32_MIN, PI, Value

block_names: dict[str, str] = {
    "BEGINCODE": "BEGIN CODE",
    "ENDCODE": "END CODE",
    "BEGINIF": "BEGIN IF",
    "ENDIF": "END IF",
    "BEGINWHILE": "BEGIN WHILE",
    "ENDWHILE": "END WHILE",
}


def describe(tok: Token) -> str:
    if tok.type == "NEXTLINE":
        return "new line"
    if tok.type == "EOF":
        return "end of input"
    return repr(tok.value)


class Parser:
    """
    CODE Parser Class

    Attributes
    ----------
    tokens : list[Token]
        The input token stream to be parsed.
    position : int
        Current index into the token stream.
    declared : dict[str, str]
        Names declared so far, mapped to their declared type.
    loop_depth : int
        Number of enclosing `WHILE` bodies.
    in_display : bool
        True while parsing the operands of a `DISPLAY` statement.
    in_condition : bool
        True while parsing an `IF`/`WHILE` condition.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens: list[Token] = tokens
        self.position: int = 0
        self.declared: dict[str, str] = {}
        self.loop_depth: int = 0
        self.in_display: bool = False
        self.in_condition: bool = False
        self.declaration_phase: list[bool] = []

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def current(self) -> Token:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        line = self.tokens[-1].line if self.tokens else 0
        return Token("EOF", "EOF", line)

    def peek(self, offset: int = 1) -> Token:
        index = self.position + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return Token("EOF", "EOF", self.current().line)

    def advance(self) -> Token:
        tok = self.current()
        if self.position < len(self.tokens):
            self.position += 1
        return tok

    def check(self, *types: str) -> bool:
        return self.current().type in types

    def match(self, *types: str) -> Token | None:
        if self.check(*types):
            return self.advance()
        return None

    def consume(self, type_: str, message: str) -> Token:
        if self.check(type_):
            return self.advance()
        raise self.error(message)

    def error(self, message: str, tok: Token | None = None) -> ParseError:
        tok = tok or self.current()
        return ParseError(message, tok.line)

    def skip_newlines(self) -> None:
        while self.match("NEXTLINE"):
            pass

    def index_past_newlines(self) -> int:
        index = self.position
        while index < len(self.tokens) and self.tokens[index].type == "NEXTLINE":
            index += 1
        return index

    @staticmethod
    def is_reserved(tok: Token) -> bool:
        return tok.type != "IDENTIFIER" and tok.value in keywords

    def require_declared(self, tok: Token) -> None:
        if tok.value not in self.declared:
            raise self.error(f"Undeclared variable '{tok.value}'.", tok)

    # ------------------------------------------------------------------
    # Program structure
    # ------------------------------------------------------------------

    def parse(self) -> ASTNode:
        """Parse a full CODE program and return its `program` node."""
        self.ensure_program_structure()
        self.skip_newlines()
        begin = self.consume("BEGINCODE", "Expect 'BEGIN CODE' at the start of the program.")
        try:
            statements = self.parse_statements("ENDCODE")
        except RecursionError:
            raise self.error("Expression nested too deeply.") from None
        self.consume("ENDCODE", "Expect 'END CODE' at the end of the program.")
        logging.debug("Parsed %d top-level statements", len(statements))
        return ASTNode("program", children=statements, line=begin.line, col=begin.col)

    def ensure_program_structure(self) -> None:
        """Checks the single `BEGIN CODE` ... `END CODE` boundary before descent."""
        begins = [i for i, t in enumerate(self.tokens) if t.type == "BEGINCODE"]
        ends = [i for i, t in enumerate(self.tokens) if t.type == "ENDCODE"]

        if not begins:
            line = self.tokens[0].line if self.tokens else 1
            raise ParseError("BEGIN CODE must exist for the program to run.", line or 1)
        if not ends:
            raise ParseError(
                "END CODE must exist for the program to run.", self.current().line
            )
        if len(begins) > 1:
            raise ParseError(
                "Only one BEGIN CODE should exist.", self.tokens[begins[1]].line
            )
        if len(ends) > 1:
            raise ParseError("Only one END CODE should exist.", self.tokens[ends[1]].line)

        begin, end = begins[0], ends[0]
        if end < begin:
            raise ParseError(
                "END CODE cannot come before BEGIN CODE.", self.tokens[end].line
            )
        for index, tok in enumerate(self.tokens):
            if (index < begin or index > end) and tok.type not in ("NEXTLINE", "EOF"):
                raise ParseError(
                    f"Unexpected {describe(tok)} outside BEGIN CODE and END CODE.",
                    tok.line,
                )

    def parse_statements(self, end_type: str) -> list[ASTNode]:
        """Parse statements up to (not including) `end_type`.

        Each call opens a new declaration phase for its nesting level.
        """
        statements: list[ASTNode] = []
        self.declaration_phase.append(True)
        self.skip_newlines()
        while not self.check(end_type, *block_end_tokens):
            statements.append(self.parse_statement())
            self.expect_statement_end()
            self.skip_newlines()
        self.declaration_phase.pop()
        return statements

    def parse_block(self, end_type: str) -> list[ASTNode]:
        """Parse a block body and its closing marker."""
        opener = self.tokens[self.position - 1]
        statements = self.parse_statements(end_type)
        name = block_names[end_type]
        self.consume(end_type, f"Expect '{name}' after block.")
        if not statements:
            statements = [ASTNode("empty", line=opener.line, col=opener.col)]
        return statements

    def expect_statement_end(self) -> None:
        if self.check("NEXTLINE", *block_end_tokens):
            return
        raise self.error(f"Expect new line after statement, got {describe(self.current())}.")

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse_statement(self) -> ASTNode:
        """Parse a single statement."""
        tok = self.current()

        if tok.type in type_tokens:
            if not self.declaration_phase[-1]:
                raise self.error(
                    "Variable declarations cannot occur after non-declaration statements."
                )
            return self.parse_declaration()

        self.declaration_phase[-1] = False

        if tok.type == "IF":
            return self.parse_if()
        if tok.type == "WHILE":
            return self.parse_while()
        if tok.type == "DISPLAY":
            return self.parse_output()
        if tok.type == "SCAN":
            return self.parse_input()
        if tok.type in ("BREAK", "CONTINUE"):
            return self.parse_loop_control()
        if tok.type == "IDENTIFIER":
            if self.peek().type in ("INCREMENT", "DECREMENT"):
                return self.parse_postfix_statement()
            return self.parse_assignment_statement()
        if tok.type == "UNKNOWN":
            raise self.error(f"Unknown character '{tok.value}'.")
        if self.is_reserved(tok) and self.peek().type in assignment_ops:
            raise self.error(
                f"'{tok.value}' is a reserved keyword and cannot be used as a variable name."
            )
        raise self.error(f"Expect statement, got {describe(tok)}.")

    def parse_declaration(self) -> ASTNode:
        type_tok = self.advance()
        declared_type = type_tok.type
        declarators: list[ASTNode] = []

        while True:
            name_tok = self.current()
            if self.is_reserved(name_tok):
                raise self.error(
                    f"Reserved keyword '{name_tok.value}' cannot be used as a variable name."
                )
            if name_tok.type != "IDENTIFIER":
                raise self.error(f"Invalid variable name {describe(name_tok)}.")
            self.advance()

            name = name_tok.value
            if name in self.declared:
                raise self.error(f"Variable '{name}' already declared.", name_tok)

            children: list[ASTNode] = []
            if self.match("ASSIGNMENT"):
                initializer = self.parse_expression()
                self.check_literal_for_type(declared_type, name, initializer)
                children.append(initializer)

            self.declared[name] = declared_type
            declarators.append(
                ASTNode(
                    "declarator",
                    name,
                    children,
                    line=name_tok.line,
                    col=name_tok.col,
                    type_=declared_type,
                )
            )
            if not self.match("COMMA"):
                break

        return ASTNode(
            "declaration",
            children=declarators,
            line=type_tok.line,
            col=type_tok.col,
            type_=declared_type,
        )

    def check_literal_for_type(self, declared_type: str, name: str, expr: ASTNode) -> None:
        """Rejects string literals that can never fit a BOOL or CHAR variable."""
        if expr.kind != "literal" or not isinstance(expr.value, Value):
            return
        if expr.value.type != "STRING":
            return
        if declared_type == "BOOL":
            raise ParseError(
                f"Invalid BOOL value \"{expr.value.data}\" for '{name}'; "
                'expected "TRUE" or "FALSE".',
                expr.line,
            )
        if declared_type == "CHAR":
            raise ParseError(
                f"CHAR variable '{name}' cannot be assigned a string literal.",
                expr.line,
            )

    def parse_assignment_statement(self) -> ASTNode:
        name_tok = self.advance()
        self.require_declared(name_tok)

        op_tok = self.current()
        if op_tok.type not in assignment_ops:
            raise self.error("Expect proper assignment operator after variable name.")
        self.advance()

        value = self.parse_expression()
        self.check_literal_for_type(self.declared[name_tok.value], name_tok.value, value)
        return ASTNode(
            "assign",
            name_tok.value,
            [value],
            line=name_tok.line,
            col=name_tok.col,
            op=assignment_ops[op_tok.type],
        )

    def parse_postfix_statement(self) -> ASTNode:
        name_tok = self.advance()
        self.require_declared(name_tok)
        op_tok = self.advance()
        kind = "post_increment" if op_tok.type == "INCREMENT" else "post_decrement"
        return ASTNode(kind, name_tok.value, line=name_tok.line, col=name_tok.col)

    def parse_condition(self, keyword: str) -> ASTNode:
        self.consume("OPENPARENTHESIS", f"Expect '(' after '{keyword}'.")
        self.in_condition = True
        condition = self.parse_expression()
        self.in_condition = False
        self.consume("CLOSEPARENTHESIS", f"Expect ')' after {keyword} condition.")
        self.skip_newlines()
        return condition

    def parse_if(self) -> ASTNode:
        """Parse an IF statement with optional ELSE / ELSE IF branch."""
        if_tok = self.advance()
        condition = self.parse_condition("IF")
        self.consume("BEGINIF", "Expect 'BEGIN IF'.")
        then_branch = self.parse_block("ENDIF")
        node = ASTNode("if", condition, then_branch, line=if_tok.line, col=if_tok.col)

        index = self.index_past_newlines()
        if index < len(self.tokens) and self.tokens[index].type == "ELSE":
            self.position = index + 1
            self.skip_newlines()
            if self.check("IF"):
                node.else_children = [self.parse_if()]
            else:
                self.consume("BEGINIF", "Expect 'BEGIN IF' after 'ELSE'.")
                node.else_children = self.parse_block("ENDIF")
        return node

    def parse_while(self) -> ASTNode:
        """Parse a WHILE loop with condition and body block."""
        while_tok = self.advance()
        condition = self.parse_condition("WHILE")
        self.consume("BEGINWHILE", "Expect 'BEGIN WHILE'.")
        self.loop_depth += 1
        body = self.parse_block("ENDWHILE")
        self.loop_depth -= 1
        return ASTNode("while", condition, body, line=while_tok.line, col=while_tok.col)

    def parse_loop_control(self) -> ASTNode:
        tok = self.advance()
        if self.loop_depth == 0:
            raise self.error(f"{tok.value} can only be used inside a WHILE loop.", tok)
        return ASTNode(tok.type.lower(), line=tok.line, col=tok.col)

    def at_display_end(self) -> bool:
        tok = self.current()
        if tok.type == "NEXTLINE":
            return tok.value != "$"
        return tok.type in block_end_tokens

    def parse_output(self) -> ASTNode:
        """Parse a DISPLAY statement; `$` contributes a newline literal."""
        display_tok = self.advance()
        self.consume("COLON", "Expected ':' after DISPLAY statement.")
        if self.at_display_end():
            raise self.error("Nothing to display.")

        expressions: list[ASTNode] = []
        expect_concat = False
        self.in_display = True
        while not self.at_display_end():
            if self.check("NEXTLINE"):
                sep = self.advance()
                expressions.append(
                    ASTNode("literal", Value.string("\n"), line=sep.line, col=sep.col)
                )
                expect_concat = False
                continue
            if expect_concat and not self.match("CONCATENATE"):
                raise self.error("Expect '&' for concatenation between expressions.")
            expressions.append(self.parse_expression())
            expect_concat = True
        self.in_display = False

        return ASTNode(
            "output", children=expressions, line=display_tok.line, col=display_tok.col
        )

    def parse_input(self) -> ASTNode:
        """Parse a SCAN statement with one or more declared targets."""
        scan_tok = self.advance()
        self.consume("COLON", "Expected ':' after SCAN statement.")

        targets: list[ASTNode] = []
        while True:
            tok = self.current()
            if self.is_reserved(tok):
                raise self.error(
                    f"'{tok.value}' is a reserved keyword and cannot be used as a variable name."
                )
            if tok.type != "IDENTIFIER":
                raise self.error("Variable name for input expected.")
            self.require_declared(tok)
            self.advance()
            targets.append(ASTNode("variable", tok.value, line=tok.line, col=tok.col))
            if not self.match("COMMA"):
                break

        if self.check("IDENTIFIER"):
            raise self.error(
                f"Expect comma between variables, received '{self.current().value}'."
            )
        return ASTNode("input", children=targets, line=scan_tok.line, col=scan_tok.col)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> ASTNode:
        return self.parse_assignment()

    def parse_assignment(self) -> ASTNode:
        expr = self.parse_or()

        if self.check(*assignment_ops):
            op_tok = self.advance()
            if op_tok.type == "ASSIGNMENT" and self.in_condition:
                raise self.error("Assignment is not allowed inside a condition.", op_tok)
            value = self.parse_assignment()
            if expr.kind != "variable":
                raise self.error("Invalid assignment target.", op_tok)
            name = str(expr.value)
            self.check_literal_for_type(self.declared[name], name, value)
            return ASTNode(
                "assign_expr",
                name,
                [value],
                line=expr.line,
                col=expr.col,
                op=assignment_ops[op_tok.type],
            )

        return expr

    def parse_or(self) -> ASTNode:
        expr = self.parse_and()
        while self.check("OR"):
            op_tok = self.advance()
            right = self.parse_and()
            expr = ASTNode(
                "logical", children=[expr, right], line=op_tok.line, col=op_tok.col, op="OR"
            )
        return expr

    def parse_and(self) -> ASTNode:
        expr = self.parse_equality()
        while self.check("AND"):
            op_tok = self.advance()
            right = self.parse_equality()
            expr = ASTNode(
                "logical", children=[expr, right], line=op_tok.line, col=op_tok.col, op="AND"
            )
        return expr

    def parse_binary_level(self, operand: str, *types: str) -> ASTNode:
        """Left-associative loop shared by the binary precedence levels."""
        parse_operand = getattr(self, operand)
        expr: ASTNode = parse_operand()
        while self.check(*types):
            op_tok = self.advance()
            if op_tok.type == "CONCATENATE" and not self.in_display:
                raise self.error(
                    "Concatenation '&' is only allowed in a DISPLAY statement.", op_tok
                )
            right = parse_operand()
            expr = ASTNode(
                "binary",
                children=[expr, right],
                line=op_tok.line,
                col=op_tok.col,
                op=binary_ops[op_tok.type],
            )
        return expr

    def parse_equality(self) -> ASTNode:
        return self.parse_binary_level("parse_relational", "EQUAL", "NOTEQUAL")

    def parse_relational(self) -> ASTNode:
        return self.parse_binary_level(
            "parse_additive", "GREATERTHAN", "LESSTHAN", "GTEQ", "LTEQ"
        )

    def parse_additive(self) -> ASTNode:
        return self.parse_binary_level("parse_multiplicative", "ADD", "SUB", "CONCATENATE")

    def parse_multiplicative(self) -> ASTNode:
        return self.parse_binary_level("parse_unary", "MUL", "DIV", "MOD")

    def parse_unary(self) -> ASTNode:
        if self.check("SUB") and self.peek().type == "INTEGERLITERAL":
            # Signed literal, so -2147483648 stays in range.
            op_tok = self.advance()
            number = -int(self.advance().value)
            if number < INT32_MIN:
                raise self.error(f"Integer literal {number} is out of range.", op_tok)
            return self.literal(Value("INT", number), op_tok)
        if self.check("ADD", "SUB", "NOT"):
            op_tok = self.advance()
            operand = self.parse_unary()
            op = "NOT" if op_tok.type == "NOT" else op_tok.value
            return ASTNode(
                "unary", children=[operand], line=op_tok.line, col=op_tok.col, op=op
            )
        return self.parse_primary()

    def parse_primary(self) -> ASTNode:
        tok = self.current()

        if tok.type == "BOOLLITERAL":
            self.advance()
            return self.literal(Value.bool_(tok.value == "TRUE"), tok)
        if tok.type == "INTEGERLITERAL":
            self.advance()
            number = int(tok.value)
            if number > INT32_MAX:
                raise self.error(f"Integer literal {tok.value} is out of range.", tok)
            return self.literal(Value("INT", number), tok)
        if tok.type == "FLOATLITERAL":
            self.advance()
            return self.literal(Value.float_(float(tok.value)), tok)
        if tok.type == "STRINGLITERAL":
            self.advance()
            return self.literal(Value.string(tok.value), tok)
        if tok.type == "CHARACTERLITERAL":
            self.advance()
            return self.literal(Value.char(tok.value), tok)
        if tok.type == "PI":
            self.advance()
            return self.literal(PI, tok)
        if tok.type in function_tokens:
            return self.parse_function_call()

        if tok.type == "IDENTIFIER":
            self.advance()
            if self.check("OPENPARENTHESIS"):
                raise self.error(f"Unsupported function '{tok.value}'.", tok)
            self.require_declared(tok)
            node = ASTNode("variable", tok.value, line=tok.line, col=tok.col)
            if self.check("INCREMENT", "DECREMENT"):
                op_tok = self.advance()
                return ASTNode(
                    "unary", children=[node], line=tok.line, col=tok.col, op=op_tok.value
                )
            return node

        if tok.type == "OPENPARENTHESIS":
            self.advance()
            expr = self.parse_expression()
            self.consume("CLOSEPARENTHESIS", "Expect ')' after expression.")
            return ASTNode("grouping", children=[expr], line=tok.line, col=tok.col)

        if tok.type == "UNKNOWN":
            raise self.error(f"Unknown character '{tok.value}'.")
        if self.is_reserved(tok):
            raise self.error(f"Invalid use of reserved keyword '{tok.value}'.")
        raise self.error(f"Expect expression, got {describe(tok)}.")

    @staticmethod
    def literal(value: Value, tok: Token) -> ASTNode:
        return ASTNode("literal", value, line=tok.line, col=tok.col)

    def parse_function_call(self) -> ASTNode:
        """Parse a built-in call taking exactly one argument."""
        name_tok = self.advance()
        self.consume("OPENPARENTHESIS", "Expect '(' after function name.")
        if self.check("CLOSEPARENTHESIS"):
            raise self.error(f"Function '{name_tok.value}' expects an argument.")
        argument = self.parse_expression()
        if self.check("COMMA"):
            raise self.error(f"Function '{name_tok.value}' takes exactly one argument.")
        self.consume("CLOSEPARENTHESIS", "Expect ')' after argument.")
        return ASTNode(
            "call", name_tok.type, [argument], line=name_tok.line, col=name_tok.col
        )


def parse(tokens: list[Token]) -> ASTNode:
    """Parse a token list into a `program` node."""
    return Parser(tokens).parse()


__all__ = ["Parser", "parse"]
