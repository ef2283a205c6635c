"""
Error taxonomy for the CODE language pipeline.

Every stage raises its own subclass of `CodeLangError` so that a caller can tell
"never executed" (`LexError`, `ParseError`) apart from "executed until it
failed" (`EvaluationError`). All errors are fatal to the run.

Classes:
    CodeLangError: Base class carrying a message and the originating source line.
    LexError: Malformed literal or escape while tokenizing.
    ParseError: Structural, grammar or static semantic violation.
    EvaluationError: Runtime failure while interpreting the tree.

Example:
    >>> raise ParseError("Variable 'x' already declared.", line=3)
    Traceback (most recent call last):
    ...
    codelang.codelang_errors.ParseError: Error at line: 3. Variable 'x' already declared.
"""


class CodeLangError(Exception):
    """Base exception for every CODE language failure.

    Attributes:
        message (str): Human readable description without the line prefix.
        line (int | None): 1-based source line the error originates from.
    """

    def __init__(self, message: str, line: int | None = None):
        self.message = message
        self.line = line
        super().__init__(self.format())

    def format(self) -> str:
        if self.line is None:
            return self.message
        return f"Error at line: {self.line}. {self.message}"


class LexError(CodeLangError):
    """Raised on unterminated strings, characters or escapes."""


class ParseError(CodeLangError):
    """Raised on the first structural or grammar violation."""


class EvaluationError(CodeLangError):
    """Raised when a statement or expression cannot be evaluated."""


__all__ = ["CodeLangError", "EvaluationError", "LexError", "ParseError"]
