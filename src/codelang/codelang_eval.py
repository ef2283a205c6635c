"""
Tree-walking evaluator for the CODE language.

This module defines the `ExecutionContext` (the single flat, typed variable
store of a run) and the `Interpreter` that walks a parsed `program` node.

Behavior:
    - Statements are dispatched on their node kind to `_exec_<kind>` methods and
      return a control signal: "completed", "break" or "continue". Loops handle
      the signal explicitly; nothing else interprets it.
    - Expressions are dispatched to `_eval_<kind>` methods and always produce a
      `codelang_values.Value`.
    - Every variable keeps the type it was declared with. Stored values are
      converted to that type or the run fails.
    - Integer arithmetic is checked against the signed 32-bit range, division
      and modulo by zero are fatal, and text read by `SCAN` takes part in
      arithmetic by being read as a number on use.
    - Output is written as soon as each `DISPLAY` operand is evaluated; nothing
      is rolled back when a later statement fails.

Raises:
    EvaluationError: For every runtime failure, carrying the node's line.
"""

import logging
import math
import sys
from typing import Literal, TextIO

from codelang.codelang_ast import ASTNode
from codelang.codelang_constants import compound_ops, keywords
from codelang.codelang_errors import EvaluationError
from codelang.codelang_lexer import tokenize
from codelang.codelang_parser import Parser
from codelang.codelang_values import (
    Value,
    coerce_bool,
    coerce_numeric,
    convert_to_type,
    parse_float,
    parse_int,
    stringify,
    type_name,
    zero_value,
)

Signal = Literal["completed", "break", "continue"]


class ExecutionContext:
    """Flat mapping from variable name to (value, declared type).

    There is exactly one context per run; `IF` and `WHILE` bodies share it.

    Attributes:
        variables (dict[str, tuple[Value, str]]): The variable store.
    """

    def __init__(self) -> None:
        self.variables: dict[str, tuple[Value, str]] = {}

    def declare(self, name: str, value: Value, type_: str, line: int = 0) -> Value:
        """Creates (or, when a loop body runs again, re-initializes) a variable."""
        converted = convert_to_type(value, type_)
        if converted is None:
            raise EvaluationError(
                f"Type mismatch: variable '{name}' is declared {type_} "
                f"but was given a {value.type} value.",
                line,
            )
        self.variables[name] = (converted, type_)
        return converted

    def get(self, name: str, line: int = 0) -> Value:
        if name in self.variables:
            return self.variables[name][0]
        if name in keywords:
            raise EvaluationError(f"Invalid use of reserved keyword '{name}'.", line)
        raise EvaluationError(f"Variable '{name}' is not defined.", line)

    def type_of(self, name: str, line: int = 0) -> str:
        self.get(name, line)
        return self.variables[name][1]

    def set(self, name: str, value: Value, line: int = 0) -> Value:
        """Stores `value` converted to the variable's declared type.

        Returns:
            Value: The value actually stored.
        """
        type_ = self.type_of(name, line)
        converted = convert_to_type(value, type_)
        if converted is None:
            raise EvaluationError(
                f"Type mismatch: cannot assign a {value.type} value to "
                f"{type_} variable '{name}'.",
                line,
            )
        self.variables[name] = (converted, type_)
        return converted

    def snapshot(self) -> dict[str, Value]:
        return {name: value for name, (value, _) in self.variables.items()}


class Interpreter:
    """Executes a parsed CODE program.

    Attributes:
        output (TextIO): Sink receiving `DISPLAY` text. Defaults to stdout.
        input_stream (TextIO): Source of `SCAN` lines. Defaults to stdin.
        context (ExecutionContext): Variables of the current run.
    """

    def __init__(self, output: TextIO | None = None, input_stream: TextIO | None = None):
        self.output: TextIO = output if output is not None else sys.stdout
        self.input_stream: TextIO = input_stream if input_stream is not None else sys.stdin
        self.context = ExecutionContext()

    def interpret(self, program: ASTNode) -> None:
        """Runs every top-level statement of `program` in order.

        Raises:
            TypeError: If `program` is not a `program` node.
            EvaluationError: On the first runtime failure.
        """
        if not isinstance(program, ASTNode) or program.kind != "program":
            raise TypeError("interpret() expects a 'program' ASTNode.")
        self.context = ExecutionContext()
        logging.debug("Interpreting %d statements", len(program.children))
        self.execute_block(program.children)
        self.output.flush()
        logging.debug("Finished with variables: %s", sorted(self.context.variables))

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute_block(self, statements: list[ASTNode]) -> Signal:
        for statement in statements:
            signal = self.execute(statement)
            if signal != "completed":
                return signal
        return "completed"

    def execute(self, node: ASTNode) -> Signal:
        handler = getattr(self, f"_exec_{node.kind}", None)
        if handler is None:
            raise TypeError(f"'{node.kind}' is not a statement (line {node.line}).")
        try:
            signal: Signal = handler(node)
        except RecursionError:
            raise EvaluationError("Expression nested too deeply.", node.line) from None
        return signal

    def _exec_declaration(self, node: ASTNode) -> Signal:
        declared_type = str(node.type)
        for declarator in node.children:
            if declarator.children:
                value = self.evaluate(declarator.children[0])
            else:
                value = zero_value(declared_type)
            self.context.declare(str(declarator.value), value, declared_type, declarator.line)
        return "completed"

    def _exec_assign(self, node: ASTNode) -> Signal:
        self.assign(node)
        return "completed"

    def _exec_post_increment(self, node: ASTNode) -> Signal:
        name = str(node.value)
        current = self.context.get(name, node.line)
        self.context.set(name, self.step(current, 1, node.line), node.line)
        return "completed"

    def _exec_post_decrement(self, node: ASTNode) -> Signal:
        name = str(node.value)
        current = self.context.get(name, node.line)
        self.context.set(name, self.step(current, -1, node.line), node.line)
        return "completed"

    def _exec_input(self, node: ASTNode) -> Signal:
        for target in node.children:
            name = str(target.value)
            raw = self.input_stream.readline()
            if not raw:
                raise EvaluationError(f"No input available for '{name}'.", target.line)
            text = raw.rstrip("\r\n")
            if text == "":
                raise EvaluationError(f"Empty input for '{name}'.", target.line)
            self.context.set(name, Value.string(text), target.line)
        return "completed"

    def _exec_output(self, node: ASTNode) -> Signal:
        for expression in node.children:
            self.output.write(stringify(self.evaluate(expression)))
        return "completed"

    def _exec_if(self, node: ASTNode) -> Signal:
        assert isinstance(node.value, ASTNode)  # for mypy
        if self.condition(node.value, "IF"):
            return self.execute_block(node.children)
        return self.execute_block(node.else_children)

    def _exec_while(self, node: ASTNode) -> Signal:
        assert isinstance(node.value, ASTNode)  # for mypy
        while self.condition(node.value, "WHILE"):
            signal = self.execute_block(node.children)
            if signal == "break":
                break
        return "completed"

    def _exec_break(self, node: ASTNode) -> Signal:
        return "break"

    def _exec_continue(self, node: ASTNode) -> Signal:
        return "continue"

    def _exec_empty(self, node: ASTNode) -> Signal:
        return "completed"

    def condition(self, expression: ASTNode, keyword: str) -> bool:
        value = self.evaluate(expression)
        if value.type != "BOOL":
            raise EvaluationError(
                f"{keyword} condition must be BOOL, got {value.type}.", expression.line
            )
        return bool(value.data)

    def assign(self, node: ASTNode) -> Value:
        """Shared by assignment statements and assignment expressions."""
        name = str(node.value)
        value = self.evaluate(node.children[0])
        if node.op != "=":
            current = self.context.get(name, node.line)
            value = self.binary(compound_ops[str(node.op)], current, value, node.line)
        return self.context.set(name, value, node.line)

    @staticmethod
    def step(value: Value, delta: int, line: int) -> Value:
        if value.type != "INT":
            raise EvaluationError(
                f"Increment/decrement requires an INT operand, got {value.type}.", line
            )
        return Value.int_(value.data + delta, line)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def evaluate(self, node: ASTNode) -> Value:
        handler = getattr(self, f"_eval_{node.kind}", None)
        if handler is None:
            raise TypeError(f"'{node.kind}' is not an expression (line {node.line}).")
        value: Value = handler(node)
        return value

    def _eval_literal(self, node: ASTNode) -> Value:
        assert isinstance(node.value, Value)  # for mypy
        return node.value

    def _eval_variable(self, node: ASTNode) -> Value:
        return self.context.get(str(node.value), node.line)

    def _eval_grouping(self, node: ASTNode) -> Value:
        return self.evaluate(node.children[0])

    def _eval_assign_expr(self, node: ASTNode) -> Value:
        return self.assign(node)

    def _eval_binary(self, node: ASTNode) -> Value:
        left = self.evaluate(node.children[0])
        right = self.evaluate(node.children[1])
        return self.binary(str(node.op), left, right, node.line)

    def _eval_logical(self, node: ASTNode) -> Value:
        left = self.evaluate(node.children[0])
        right = self.evaluate(node.children[1])
        if left.type != "BOOL" or right.type != "BOOL":
            raise EvaluationError(
                f"Invalid operands for logical {node.op}: {left.type} and {right.type}.",
                node.line,
            )
        if node.op == "AND":
            return Value.bool_(left.data and right.data)
        return Value.bool_(left.data or right.data)

    def _eval_unary(self, node: ASTNode) -> Value:
        operand = self.evaluate(node.children[0])
        op = node.op

        if op in ("++", "--"):
            # The variable itself is left unchanged.
            return self.step(operand, 1 if op == "++" else -1, node.line)

        if op == "NOT":
            operand = coerce_bool(operand)
            if operand.type != "BOOL":
                raise EvaluationError(
                    f"Unary 'NOT' expects a BOOL operand, got {operand.type}.", node.line
                )
            return Value.bool_(not operand.data)

        operand = coerce_numeric(operand)
        if not operand.is_numeric():
            raise EvaluationError(
                f"Unary '{op}' expects a numeric operand, got {operand.type}.", node.line
            )
        if op == "+":
            return operand
        if operand.type == "INT":
            return Value.int_(-operand.data, node.line)
        return Value.float_(-operand.data)

    def _eval_call(self, node: ASTNode) -> Value:
        argument = self.evaluate(node.children[0])
        function = getattr(self, f"_call_{str(node.value).lower()}")
        result: Value = function(argument, node.line)
        return result

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def binary(self, op: str, left: Value, right: Value, line: int) -> Value:
        """Applies a binary operator after the language's coercion rules."""
        if op == "&":
            return Value.string(stringify(left) + stringify(right))

        left = coerce_numeric(left)
        right = coerce_numeric(right)
        if left.type == "INT" and right.type == "FLOAT":
            left = Value.float_(left.data)
        elif left.type == "FLOAT" and right.type == "INT":
            right = Value.float_(right.data)

        if left.type == "INT" and right.type == "INT":
            return self.int_operation(op, left.data, right.data, line)
        if left.type == "FLOAT" and right.type == "FLOAT":
            return self.float_operation(op, left.data, right.data, line)
        if op in ("==", "<>") and left.type == right.type:
            equal = left.data == right.data
            return Value.bool_(equal if op == "==" else not equal)

        raise EvaluationError(
            f"Invalid operands for '{op}': {left.type} and {right.type}.", line
        )

    @staticmethod
    def compare(op: str, a: int | float, b: int | float) -> Value | None:
        comparisons = {
            ">": a > b,
            "<": a < b,
            ">=": a >= b,
            "<=": a <= b,
            "==": a == b,
            "<>": a != b,
        }
        if op in comparisons:
            return Value.bool_(comparisons[op])
        return None

    def int_operation(self, op: str, a: int, b: int, line: int) -> Value:
        compared = self.compare(op, a, b)
        if compared is not None:
            return compared
        if op == "+":
            return Value.int_(a + b, line)
        if op == "-":
            return Value.int_(a - b, line)
        if op == "*":
            return Value.int_(a * b, line)
        if op == "/":
            if b == 0:
                raise EvaluationError("Division by zero.", line)
            quotient = abs(a) // abs(b)
            return Value.int_(-quotient if (a < 0) != (b < 0) else quotient, line)
        if op == "%":
            if b == 0:
                raise EvaluationError("Modulo by zero.", line)
            remainder = abs(a) % abs(b)
            return Value.int_(-remainder if a < 0 else remainder, line)
        raise EvaluationError(f"Unsupported operator '{op}' for INT operands.", line)

    def float_operation(self, op: str, a: float, b: float, line: int) -> Value:
        compared = self.compare(op, a, b)
        if compared is not None:
            return compared
        if op == "+":
            return Value.float_(a + b)
        if op == "-":
            return Value.float_(a - b)
        if op == "*":
            return Value.float_(a * b)
        if op == "/":
            if b == 0:
                raise EvaluationError("Division by zero.", line)
            return Value.float_(a / b)
        if op == "%":
            if b == 0:
                raise EvaluationError("Modulo by zero.", line)
            if math.isinf(a):
                return Value.float_(math.nan)
            return Value.float_(math.fmod(a, b))
        raise EvaluationError(f"Unsupported operator '{op}' for FLOAT operands.", line)

    # ------------------------------------------------------------------
    # Built-in functions
    # ------------------------------------------------------------------

    @staticmethod
    def _numeric_argument(name: str, argument: Value, line: int) -> float:
        number = coerce_numeric(argument)
        if not number.is_numeric():
            raise EvaluationError(
                f"{name} expects a numeric argument, got {argument.type}.", line
            )
        return float(number.data)

    def _call_ceil(self, argument: Value, line: int) -> Value:
        number = self._numeric_argument("CEIL", argument, line)
        if not math.isfinite(number):
            return Value.float_(number)
        return Value.float_(math.ceil(number))

    def _call_floor(self, argument: Value, line: int) -> Value:
        number = self._numeric_argument("FLOOR", argument, line)
        if not math.isfinite(number):
            return Value.float_(number)
        return Value.float_(math.floor(number))

    def _call_tofloat(self, argument: Value, line: int) -> Value:
        return Value.float_(self._numeric_argument("TOFLOAT", argument, line))

    def _call_tostring(self, argument: Value, line: int) -> Value:
        return Value.string(stringify(argument))

    def _call_type(self, argument: Value, line: int) -> Value:
        return Value.string(type_name(argument))

    def _call_toint(self, argument: Value, line: int) -> Value:
        if argument.type == "INT":
            return argument
        if argument.type == "CHAR":
            ch = argument.data
            return Value.int_(int(ch) if ch in "0123456789" else ord(ch), line)

        number: float | None = None
        if argument.type == "FLOAT":
            number = argument.data
        elif argument.type == "STRING":
            whole = parse_int(argument.data)
            if whole is not None:
                return Value("INT", whole)
            number = parse_float(argument.data)

        if number is None or math.isinf(number) or math.isnan(number):
            raise EvaluationError(
                f"TOINT cannot convert {argument.type} value '{stringify(argument)}'.",
                line,
            )
        return Value.int_(math.trunc(number), line)


def run_source(
    source: str, output: TextIO | None = None, input_stream: TextIO | None = None
) -> Interpreter:
    """Tokenizes, parses and interprets `source` in one call.

    Returns:
        Interpreter: The interpreter after the run, for inspecting its context.
    """
    program = Parser(tokenize(source)).parse()
    interpreter = Interpreter(output=output, input_stream=input_stream)
    interpreter.interpret(program)
    return interpreter


__all__ = ["ExecutionContext", "Interpreter", "Signal", "run_source"]
