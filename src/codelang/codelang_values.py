"""
Runtime values for the CODE language evaluator.

A runtime value is one of five closed variants, tagged by the same type names
the language declares:

    INT     Python int within the signed 32-bit range
    FLOAT   Python float rounded to IEEE single precision
    CHAR    one-character str
    BOOL    bool
    STRING  str

Every coercion helper below is a total function over these variants: it
either returns a converted `Value` or signals failure (`None` or an
`EvaluationError`), never a foreign Python object.
"""

import math
import struct
from typing import Any

from codelang.codelang_errors import EvaluationError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

PRIMITIVE_TYPES: tuple[str, ...] = ("INT", "FLOAT", "CHAR", "BOOL", "STRING")


def to_float32(number: float) -> float:
    """Rounds a Python float to the nearest single-precision value."""
    try:
        return float(struct.unpack("f", struct.pack("f", number))[0])
    except OverflowError:
        return math.copysign(math.inf, number)


def check_int32(number: int, line: int = 0) -> int:
    """Returns `number` unchanged or raises an overflow error."""
    if number < INT32_MIN or number > INT32_MAX:
        raise EvaluationError(
            f"Integer overflow: {number} is outside the 32-bit range.", line
        )
    return number


class Value:
    """A typed runtime value.

    Attributes:
        type (str): One of `PRIMITIVE_TYPES`.
        data (int | float | str | bool): The Python payload.
    """

    __slots__ = ("type", "data")

    def __init__(self, type_: str, data: Any):
        if type_ not in PRIMITIVE_TYPES:
            raise ValueError(f"Unknown runtime type: {type_!r}")
        self.type = type_
        self.data = data

    @classmethod
    def int_(cls, number: int, line: int = 0) -> "Value":
        return cls("INT", check_int32(int(number), line))

    @classmethod
    def float_(cls, number: float) -> "Value":
        return cls("FLOAT", to_float32(float(number)))

    @classmethod
    def char(cls, ch: str) -> "Value":
        return cls("CHAR", ch)

    @classmethod
    def bool_(cls, flag: bool) -> "Value":
        return cls("BOOL", bool(flag))

    @classmethod
    def string(cls, text: str) -> "Value":
        return cls("STRING", text)

    def is_numeric(self) -> bool:
        return self.type in ("INT", "FLOAT")

    def __repr__(self) -> str:
        return f"Value({self.type}, {self.data!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Value)
            and self.type == other.type
            and self.data == other.data
        )

    def __hash__(self) -> int:
        return hash((self.type, self.data))


PI = Value.float_(math.pi)


def format_float(number: float) -> str:
    """Renders a single-precision float with the fewest digits that round-trip.

    Integral values keep an explicit `.0` suffix (`30.0`), everything else uses
    the shortest decimal form (`28.274334`).
    """
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_integer() and abs(number) < 1e16:
        return f"{int(number)}.0"
    text = repr(number)
    for precision in range(1, 10):
        candidate = f"{number:.{precision}g}"
        if to_float32(float(candidate)) == number:
            text = candidate
            break
    if "e" in text:
        mantissa, exponent = text.split("e")
        text = f"{mantissa}E{int(exponent):+03d}"
    return text


def stringify(value: Value) -> str:
    """String form used by `DISPLAY`, `&` and `TOSTRING`."""
    if value.type == "BOOL":
        return "TRUE" if value.data else "FALSE"
    if value.type == "FLOAT":
        return format_float(value.data)
    return str(value.data)


def zero_value(type_: str) -> Value:
    """Value a declaration without an initializer starts with."""
    return {
        "INT": Value("INT", 0),
        "FLOAT": Value("FLOAT", 0.0),
        "CHAR": Value("CHAR", "\0"),
        "BOOL": Value("BOOL", False),
        "STRING": Value("STRING", ""),
    }[type_]


def parse_int(text: str) -> int | None:
    text = text.strip()
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not digits or not digits.isascii() or not digits.isdigit():
        return None
    number = int(text)
    if number < INT32_MIN or number > INT32_MAX:
        return None
    return number


def parse_float(text: str) -> float | None:
    text = text.strip()
    if "_" in text or not any(ch.isdigit() for ch in text):
        return None
    try:
        return to_float32(float(text))
    except ValueError:
        return None


def parse_bool(text: str) -> bool | None:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def coerce_numeric(value: Value) -> Value:
    """Opportunistically reads text as a number: integer first, then float."""
    if value.type != "STRING":
        return value
    number = parse_int(value.data)
    if number is not None:
        return Value("INT", number)
    real = parse_float(value.data)
    if real is not None:
        return Value("FLOAT", real)
    return value


def coerce_bool(value: Value) -> Value:
    """Opportunistically reads text as `TRUE`/`FALSE`."""
    if value.type != "STRING":
        return value
    flag = parse_bool(value.data)
    return value if flag is None else Value("BOOL", flag)


def convert_to_type(value: Value, type_: str) -> Value | None:
    """Converts `value` to a declared type, or returns None when incompatible.

    The value's textual form must parse as the target type, so lossy
    conversions such as FLOAT 2.5 into INT are rejected instead of truncated.
    """
    if value.type == type_:
        return value
    if type_ == "STRING":
        return Value("STRING", stringify(value))

    text = stringify(value)
    if type_ == "INT" and value.type == "STRING":
        number = parse_int(text)
        return None if number is None else Value("INT", number)
    if type_ == "FLOAT" and value.type in ("INT", "STRING"):
        real = parse_float(text)
        return None if real is None else Value("FLOAT", real)
    if type_ == "CHAR" and value.type == "STRING":
        return Value("CHAR", text) if len(text) == 1 else None
    if type_ == "BOOL" and value.type == "STRING":
        flag = parse_bool(text)
        return None if flag is None else Value("BOOL", flag)
    return None


def type_name(value: Value) -> str:
    """Runtime category reported by `TYPE(...)`."""
    return value.type


__all__ = [
    "INT32_MAX",
    "INT32_MIN",
    "PI",
    "PRIMITIVE_TYPES",
    "Value",
    "check_int32",
    "coerce_bool",
    "coerce_numeric",
    "convert_to_type",
    "format_float",
    "parse_bool",
    "parse_float",
    "parse_int",
    "stringify",
    "to_float32",
    "type_name",
    "zero_value",
]
