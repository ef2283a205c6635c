"""
Token tables for the CODE language.

Token types are plain upper-case strings. The tables below are read-only after
import and are shared by the lexer, the parser and the evaluator.

Exports:
    - keywords: reserved word -> token type
    - block_keywords: (BEGIN|END, CODE|IF|WHILE) -> composite block token type
    - single_char_tokens: one-character delimiters
    - type_tokens: declarable type token types
    - assignment_ops: plain and compound assignment token types
    - function_tokens: built-in single-argument function token types
    - operator_table, binary_ops, compound_ops: operator spellings
    - block_end_tokens: token types that close a statement list
"""

keywords: dict[str, str] = {
    "BEGIN": "BEGIN",
    "END": "END",
    "CODE": "CODE",
    "IF": "IF",
    "ELSE": "ELSE",
    "WHILE": "WHILE",
    "DISPLAY": "DISPLAY",
    "SCAN": "SCAN",
    "BREAK": "BREAK",
    "CONTINUE": "CONTINUE",
    # Types
    "INT": "INT",
    "FLOAT": "FLOAT",
    "CHAR": "CHAR",
    "BOOL": "BOOL",
    "STRING": "STRING",
    # Logical operators
    "AND": "AND",
    "OR": "OR",
    "NOT": "NOT",
    # Built-ins
    "PI": "PI",
    "CEIL": "CEIL",
    "FLOOR": "FLOOR",
    "TOINT": "TOINT",
    "TOFLOAT": "TOFLOAT",
    "TOSTRING": "TOSTRING",
    "TYPE": "TYPE",
}

block_keywords: dict[tuple[str, str], str] = {
    ("BEGIN", "CODE"): "BEGINCODE",
    ("END", "CODE"): "ENDCODE",
    ("BEGIN", "IF"): "BEGINIF",
    ("END", "IF"): "ENDIF",
    ("BEGIN", "WHILE"): "BEGINWHILE",
    ("END", "WHILE"): "ENDWHILE",
}

single_char_tokens: dict[str, str] = {
    ":": "COLON",
    ",": "COMMA",
    "(": "OPENPARENTHESIS",
    ")": "CLOSEPARENTHESIS",
}

# char -> (plain, doubled, with '=')
operator_table: dict[str, tuple[str, str | None, str | None]] = {
    "+": ("ADD", "INCREMENT", "ADDASSIGN"),
    "-": ("SUB", "DECREMENT", "SUBASSIGN"),
    "*": ("MUL", None, "MULASSIGN"),
    "/": ("DIV", None, "DIVASSIGN"),
    "%": ("MOD", None, "MODASSIGN"),
}

type_tokens: tuple[str, ...] = ("INT", "FLOAT", "CHAR", "BOOL", "STRING")

assignment_ops: dict[str, str] = {
    "ASSIGNMENT": "=",
    "ADDASSIGN": "+=",
    "SUBASSIGN": "-=",
    "MULASSIGN": "*=",
    "DIVASSIGN": "/=",
    "MODASSIGN": "%=",
}

# compound assignment operator -> binary operator it applies
compound_ops: dict[str, str] = {
    "+=": "+",
    "-=": "-",
    "*=": "*",
    "/=": "/",
    "%=": "%",
}

binary_ops: dict[str, str] = {
    "ADD": "+",
    "SUB": "-",
    "MUL": "*",
    "DIV": "/",
    "MOD": "%",
    "CONCATENATE": "&",
    "GREATERTHAN": ">",
    "LESSTHAN": "<",
    "GTEQ": ">=",
    "LTEQ": "<=",
    "EQUAL": "==",
    "NOTEQUAL": "<>",
}

function_tokens: tuple[str, ...] = (
    "CEIL",
    "FLOOR",
    "TOINT",
    "TOFLOAT",
    "TOSTRING",
    "TYPE",
)

block_end_tokens: tuple[str, ...] = ("ENDCODE", "ENDIF", "ENDWHILE", "EOF")

__all__ = [
    "assignment_ops",
    "binary_ops",
    "block_end_tokens",
    "block_keywords",
    "compound_ops",
    "function_tokens",
    "keywords",
    "operator_table",
    "single_char_tokens",
    "type_tokens",
]
