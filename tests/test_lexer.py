import pytest
from hypothesis import given
from hypothesis import strategies as st

from codelang.codelang_constants import keywords
from codelang.codelang_errors import LexError
from codelang.codelang_lexer import CharacterStream, Lexer, Token, tokenize


def types(source: str) -> list[str]:
    return [t.type for t in tokenize(source) if t.type != "EOF"]


def values(source: str) -> list[str]:
    return [t.value for t in tokenize(source) if t.type != "EOF"]


def test_declaration_tokens() -> None:
    assert [t.type for t in tokenize("INT x = 5")] == [
        "INT",
        "IDENTIFIER",
        "ASSIGNMENT",
        "INTEGERLITERAL",
        "EOF",
    ]


def test_tokenize_always_ends_with_eof() -> None:
    tokens = tokenize("")
    assert len(tokens) == 1
    assert tokens[0].type == "EOF"


def test_block_markers_are_composed() -> None:
    tokens = tokenize("BEGIN CODE\nEND CODE")
    assert [t.type for t in tokens] == ["BEGINCODE", "NEXTLINE", "ENDCODE", "EOF"]
    assert tokens[0].value == "BEGIN CODE"
    assert tokens[2].value == "END CODE"


@pytest.mark.parametrize(  # type: ignore[misc]
    "source, expected",
    [
        ("BEGIN IF", "BEGINIF"),
        ("END IF", "ENDIF"),
        ("BEGIN WHILE", "BEGINWHILE"),
        ("END   WHILE", "ENDWHILE"),
        ("BEGIN\nCODE", "BEGINCODE"),
    ],
)
def test_block_marker_variants(source: str, expected: str) -> None:
    assert types(source) == [expected]


@pytest.mark.parametrize("source", ["BEGIN LOOP", "END", "BEGIN 5"])  # type: ignore[misc]
def test_unidentified_block_marker(source: str) -> None:
    with pytest.raises(LexError, match="Unidentified"):
        tokenize(source)


def test_keywords_are_case_sensitive() -> None:
    assert types("DISPLAY display Display") == ["DISPLAY", "IDENTIFIER", "IDENTIFIER"]


@pytest.mark.parametrize(  # type: ignore[misc]
    "source, expected",
    [
        ("a + b", ["IDENTIFIER", "ADD", "IDENTIFIER"]),
        ("a += b", ["IDENTIFIER", "ADDASSIGN", "IDENTIFIER"]),
        ("a -= b", ["IDENTIFIER", "SUBASSIGN", "IDENTIFIER"]),
        ("a *= b", ["IDENTIFIER", "MULASSIGN", "IDENTIFIER"]),
        ("a /= b", ["IDENTIFIER", "DIVASSIGN", "IDENTIFIER"]),
        ("a %= b", ["IDENTIFIER", "MODASSIGN", "IDENTIFIER"]),
        ("a == b", ["IDENTIFIER", "EQUAL", "IDENTIFIER"]),
        ("a <> b", ["IDENTIFIER", "NOTEQUAL", "IDENTIFIER"]),
        ("a <= b", ["IDENTIFIER", "LTEQ", "IDENTIFIER"]),
        ("a >= b", ["IDENTIFIER", "GTEQ", "IDENTIFIER"]),
        ("a < b", ["IDENTIFIER", "LESSTHAN", "IDENTIFIER"]),
        ("a > b", ["IDENTIFIER", "GREATERTHAN", "IDENTIFIER"]),
        ("a * b / c % d", ["IDENTIFIER", "MUL", "IDENTIFIER", "DIV", "IDENTIFIER", "MOD", "IDENTIFIER"]),
        ("f(a, b):", ["IDENTIFIER", "OPENPARENTHESIS", "IDENTIFIER", "COMMA", "IDENTIFIER", "CLOSEPARENTHESIS", "COLON"]),
    ],
)
def test_operators(source: str, expected: list[str]) -> None:
    assert types(source) == expected


def test_increment_after_identifier() -> None:
    assert types("x++") == ["IDENTIFIER", "INCREMENT"]
    assert types("x--") == ["IDENTIFIER", "DECREMENT"]


def test_doubled_sign_elsewhere_is_two_signs() -> None:
    assert types("x = --5") == ["IDENTIFIER", "ASSIGNMENT", "SUB", "SUB", "INTEGERLITERAL"]
    assert types("5++") == ["INTEGERLITERAL", "ADD", "ADD"]


def test_dollar_is_a_line_break() -> None:
    tokens = tokenize("a $ b")
    assert [t.type for t in tokens] == ["IDENTIFIER", "NEXTLINE", "IDENTIFIER", "EOF"]
    assert tokens[1].value == "$"
    assert tokens[2].line == 2


def test_comment_becomes_single_line_break() -> None:
    tokens = tokenize("x # a comment\ny")
    assert [t.type for t in tokens] == ["IDENTIFIER", "NEXTLINE", "IDENTIFIER", "EOF"]
    assert tokens[1].value == "\n"
    assert tokens[2].line == 2


def test_ampersand_next_to_dollar_is_dropped() -> None:
    assert types("a & $ & b") == ["IDENTIFIER", "NEXTLINE", "IDENTIFIER"]
    assert types("a & b") == ["IDENTIFIER", "CONCATENATE", "IDENTIFIER"]


def test_string_literals() -> None:
    assert tokenize('"hello world"')[0] == Token("STRINGLITERAL", "hello world", 1, 1)
    assert types('"TRUE" "FALSE" "true"') == ["BOOLLITERAL", "BOOLLITERAL", "STRINGLITERAL"]


def test_unterminated_string() -> None:
    with pytest.raises(LexError, match="Unterminated string"):
        tokenize('"oops')


def test_character_literal() -> None:
    tok = tokenize("'c'")[0]
    assert tok.type == "CHARACTERLITERAL"
    assert tok.value == "c"


@pytest.mark.parametrize("source", ["'ab'", "''", "'a", "'a\n'"])  # type: ignore[misc]
def test_bad_character_literals(source: str) -> None:
    with pytest.raises(LexError):
        tokenize(source)


@pytest.mark.parametrize(  # type: ignore[misc]
    "source, expected",
    [("[[]", "["), ("[]]", "]"), ("[#]", "#"), ("[&]", "&"), ("[$]", "$")],
)
def test_escape_sequences(source: str, expected: str) -> None:
    tok = tokenize(source)[0]
    assert tok.type == "STRINGLITERAL"
    assert tok.value == expected


def test_escape_stops_before_next_bracket() -> None:
    assert values("[]] & [x]") == ["]", "&", "x"]


def test_unterminated_escape() -> None:
    with pytest.raises(LexError, match="Unterminated escape sequence"):
        tokenize("[abc")


def test_numbers() -> None:
    assert tokenize("123")[0] == Token("INTEGERLITERAL", "123", 1, 1)
    assert tokenize("3.14")[0] == Token("FLOATLITERAL", "3.14", 1, 1)


def test_second_dot_ends_number() -> None:
    assert values("1.2.3") == ["1.2", ".", "3"]
    assert types("1.2.3") == ["FLOATLITERAL", "UNKNOWN", "INTEGERLITERAL"]


def test_unknown_character() -> None:
    assert tokenize("@")[0] == Token("UNKNOWN", "@", 1, 1)


def test_token_positions() -> None:
    tokens = tokenize("INT x\n  x = 1")
    assert (tokens[1].line, tokens[1].col) == (1, 5)
    assert (tokens[3].line, tokens[3].col) == (2, 3)


def test_token_repr_and_hash() -> None:
    tok = Token("INT", "INT", 1, 1)
    assert repr(tok) == "Token(INT, 'INT')"
    assert tok == Token("INT", "INT", 1, 1)
    assert tok != Token("INT", "INT", 2, 1)
    assert len({tok, Token("INT", "INT", 1, 1)}) == 1


def test_character_stream_bounds() -> None:
    stream = CharacterStream("a\nb")
    assert stream.next() == "a"
    assert stream.next() == "\n"
    assert (stream.line, stream.column) == (2, 1)
    assert stream.peek() == "b"
    assert stream.peek(5) == ""
    assert stream.next() == "b"
    assert stream.end_of_file()
    with pytest.raises(IndexError):
        stream.next()


def test_lexers_do_not_share_state() -> None:
    first = Lexer(CharacterStream("x"))
    second = Lexer(CharacterStream("++"))
    assert first.next_token().type == "IDENTIFIER"
    assert second.next_token().type == "ADD"


@given(  # type: ignore[misc]
    st.from_regex(r"[A-Za-z_][A-Za-z0-9_]{0,12}", fullmatch=True).filter(
        lambda s: s not in keywords
    )
)
def test_identifiers_round_trip(name: str) -> None:
    tokens = tokenize(name)
    assert [(t.type, t.value) for t in tokens[:-1]] == [("IDENTIFIER", name)]


@given(st.integers(min_value=0, max_value=10**12))  # type: ignore[misc]
def test_integer_literals_round_trip(number: int) -> None:
    tok = tokenize(str(number))[0]
    assert tok.type == "INTEGERLITERAL"
    assert int(tok.value) == number


@given(  # type: ignore[misc]
    st.text(
        alphabet=st.characters(blacklist_characters='"', blacklist_categories=("Cs",)),
        max_size=30,
    ).filter(lambda s: s not in ("TRUE", "FALSE"))
)
def test_string_literal_contents_are_kept(text: str) -> None:
    tok = tokenize(f'"{text}"')[0]
    assert tok.type == "STRINGLITERAL"
    assert tok.value == text
