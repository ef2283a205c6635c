"""
Lexical analyzer for the CODE language.

This module converts raw source text into an ordered list of tokens:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Functions:
    tokenize(source): Run a fresh Lexer to completion and return every token,
        ending with an `EOF` token.

Features:
    - Emits an explicit `NEXTLINE` token for every newline, every `$` and every
      `#` comment (the comment text itself is skipped)
    - Composes `BEGIN`/`END` with the following word into a single block token
      (`BEGINCODE`, `ENDIF`, ...)
    - One-character lookahead for `==`, `<=`, `<>`, `>=`, `++`, `--` and the
      compound assignments `+=`, `-=`, `*=`, `/=`, `%=`
    - `++`/`--` only directly after an identifier; anywhere else they lex as two
      sign operators
    - Elides `&` next to the `$` line separator
    - Strings, single characters and `[...]` escapes
    - Unrecognized characters become `UNKNOWN` tokens for the parser to report

Raises:
    LexError: On unterminated strings, characters or escapes, on malformed
        character literals and on an unknown `BEGIN`/`END` combination.

Example:
    >>> [t.type for t in tokenize("INT x = 5")]
    ['INT', 'IDENTIFIER', 'ASSIGNMENT', 'INTEGERLITERAL', 'EOF']
"""

import logging
from typing import Any

from codelang.codelang_constants import (
    block_keywords,
    keywords,
    operator_table,
    single_char_tokens,
)
from codelang.codelang_errors import LexError


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str: The next character.

        Raises:
            IndexError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise IndexError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.mark_line()
        else:
            self.column += 1
        self.position += 1
        return char

    def mark_line(self) -> None:
        """Starts a new source line without consuming a newline character."""
        self.line += 1
        self.column = 1

    def peek(self, offset: int = 0) -> str:
        """
        Returns the character at the given offset from the current position without advancing.

        Returns:
            str: The character at the offset, or an empty string if out of bounds.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the CODE language.

    Attributes:
        type (str): The token type (e.g. 'IDENTIFIER', 'INTEGERLITERAL', 'EOF').
        value (str): The literal text of the token.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, type_: str, value: str, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


def _is_ident_start(ch: str) -> bool:
    return ch != "" and ch.isascii() and (ch.isalpha() or ch == "_")


def _is_ident_char(ch: str) -> bool:
    return ch != "" and ch.isascii() and (ch.isalnum() or ch == "_")


def _is_digit(ch: str) -> bool:
    return ch != "" and ch in "0123456789"


class Lexer:
    """Lexical analyzer for the CODE language.

    All scanning state (position, line, last emitted token) lives on the
    instance, so independent lexers never share state.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        previous (Token | None): The last token returned by `next_token`.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream
        self.previous: Token | None = None

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_blanks(self) -> None:
        """Skips spaces, tabs and carriage returns. Newlines are significant."""
        while not self.stream.end_of_file() and self.peek() in " \t\r":
            self.advance()

    def skip_comment(self) -> None:
        """Advances through the end of a comment line, consuming the newline."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()
        if not self.stream.end_of_file():
            self.advance()

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, or an `EOF` token once the source is exhausted.

        Raises:
            LexError: If a malformed literal is encountered.
        """
        while True:
            tok = self._scan()
            if tok is not None:
                self.previous = tok
                return tok

    def _scan(self) -> Token | None:
        self.skip_blanks()

        if self.stream.end_of_file():
            return Token("EOF", "EOF", self.stream.line, self.stream.column)

        ch = self.peek()
        line, col = self.stream.line, self.stream.column

        # 1. Line separators
        if ch == "\n":
            self.advance()
            return Token("NEXTLINE", "\n", line, col)
        if ch == "$":
            self.advance()
            self.stream.mark_line()
            return Token("NEXTLINE", "$", line, col)
        if ch == "#":
            self.skip_comment()
            return Token("NEXTLINE", "\n", line, col)

        # 2. Concatenation, dropped next to `$`
        if ch == "&":
            self.advance()
            if self._next_to_separator():
                return None
            return Token("CONCATENATE", "&", line, col)

        # 3. Identifier, keyword or block marker
        if _is_ident_start(ch):
            return self.scan_identifier(line, col)

        # 4. Number or float
        if _is_digit(ch):
            return self.scan_number(line, col)

        # 5. Literals
        if ch == '"':
            return self.scan_string(line, col)
        if ch == "'":
            return self.scan_character(line, col)
        if ch == "[":
            return self.scan_escape(line, col)

        # 6. Operators and delimiters
        token = self.match_operator(line, col)
        if token:
            return token

        # 7. Unknown character, reported by the parser
        return Token("UNKNOWN", self.advance(), line, col)

    def _next_to_separator(self) -> bool:
        if (
            self.previous is not None
            and self.previous.type == "NEXTLINE"
            and self.previous.value == "$"
        ):
            return True
        offset = 0
        while self.peek(offset) in (" ", "\t", "\r"):
            offset += 1
        return self.peek(offset) == "$"

    def _read_word(self) -> str:
        word = ""
        while _is_ident_char(self.peek()):
            word += self.advance()
        return word

    def scan_identifier(self, line: int, col: int) -> Token:
        ident = self._read_word()

        if ident in ("BEGIN", "END"):
            while not self.stream.end_of_file() and self.peek() in " \t\r\n":
                self.advance()
            second = self._read_word()
            block = block_keywords.get((ident, second))
            if block is None:
                raise LexError(f"Unidentified {ident} statement.", line)
            return Token(block, f"{ident} {second}", line, col)

        if ident in keywords:
            return Token(keywords[ident], ident, line, col)
        return Token("IDENTIFIER", ident, line, col)

    def scan_number(self, line: int, col: int) -> Token:
        num = ""
        has_dot = False
        while _is_digit(self.peek()) or self.peek() == ".":
            if self.peek() == ".":
                # A second dot starts the next literal.
                if has_dot:
                    break
                has_dot = True
            num += self.advance()
        return Token("FLOATLITERAL" if has_dot else "INTEGERLITERAL", num, line, col)

    def scan_string(self, line: int, col: int) -> Token:
        self.advance()
        val = ""
        while not self.stream.end_of_file() and self.peek() != '"':
            val += self.advance()
        if self.stream.end_of_file():
            raise LexError("Unterminated string literal.", line)
        self.advance()
        if val in ("TRUE", "FALSE"):
            return Token("BOOLLITERAL", val, line, col)
        return Token("STRINGLITERAL", val, line, col)

    def scan_character(self, line: int, col: int) -> Token:
        self.advance()
        val = ""
        while not self.stream.end_of_file() and self.peek() not in ("'", "\n"):
            val += self.advance()
        if self.peek() != "'":
            raise LexError("Unterminated character literal.", line)
        self.advance()
        if len(val) != 1:
            raise LexError(
                f"Character literal must hold exactly one character, got '{val}'.",
                line,
            )
        return Token("CHARACTERLITERAL", val, line, col)

    def scan_escape(self, line: int, col: int) -> Token:
        """Scans a `[...]` escape.

        The escape ends at the last `]` seen before the next `[`, so a literal
        `]` may appear inside the escaped text (`[]]` displays `]`).
        """
        source = self.stream.source
        start = self.stream.position + 1
        last_close = -1
        index = start
        while index < len(source):
            if source[index] == "[" and last_close != -1:
                break
            if source[index] == "]":
                last_close = index
            index += 1

        if last_close == -1:
            raise LexError("Unterminated escape sequence.", line)

        while self.stream.position <= last_close:
            self.advance()
        return Token("STRINGLITERAL", source[start:last_close], line, col)

    def match_operator(self, line: int, col: int) -> Token | None:
        """Matches a one- or two-character operator or a delimiter.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        ch = self.peek()
        nxt = self.peek(1)

        if ch in operator_table:
            plain, doubled, assign = operator_table[ch]
            if nxt == "=" and assign is not None:
                self.advance()
                self.advance()
                return Token(assign, ch + "=", line, col)
            if (
                nxt == ch
                and doubled is not None
                and self.previous is not None
                and self.previous.type == "IDENTIFIER"
            ):
                self.advance()
                self.advance()
                return Token(doubled, ch * 2, line, col)
            self.advance()
            return Token(plain, ch, line, col)

        if ch == "=":
            if nxt == "=":
                self.advance()
                self.advance()
                return Token("EQUAL", "==", line, col)
            self.advance()
            return Token("ASSIGNMENT", "=", line, col)

        if ch == "<":
            if nxt in ("=", ">"):
                self.advance()
                self.advance()
                return Token("LTEQ" if nxt == "=" else "NOTEQUAL", ch + nxt, line, col)
            self.advance()
            return Token("LESSTHAN", "<", line, col)

        if ch == ">":
            if nxt == "=":
                self.advance()
                self.advance()
                return Token("GTEQ", ">=", line, col)
            self.advance()
            return Token("GREATERTHAN", ">", line, col)

        if ch in single_char_tokens:
            self.advance()
            return Token(single_char_tokens[ch], ch, line, col)

        return None


def tokenize(source: str) -> list[Token]:
    """Tokenizes a whole program.

    Args:
        source (str): CODE language source text.

    Returns:
        list[Token]: Every token in source order, ending with an `EOF` token.

    Raises:
        LexError: If a malformed literal is encountered.
    """
    lexer = Lexer(CharacterStream(source))
    tokens: list[Token] = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.type == "EOF":
            break
    logging.debug("Tokenized %d tokens over %d lines", len(tokens), lexer.stream.line)
    return tokens


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
