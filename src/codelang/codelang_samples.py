"""
Built-in CODE programs.

Each sample carries its source, the text fed to `SCAN`, and the exact output a
correct run produces. The CLI runs them with `--sample N` and the batch runner
checks all of them with `--check`.
"""

from typing import NamedTuple


class Sample(NamedTuple):
    title: str
    source: str
    stdin: str = ""
    expected: str = ""


SAMPLES: dict[int, Sample] = {
    1: Sample(
        "escaped brackets around a negated expression",
        "BEGIN CODE\n"
        "INT xyz, abc=100\n"
        "xyz= ((abc *5)/10 + 10) * -1\n"
        "DISPLAY: [[] & xyz & []]\n"
        "END CODE",
        expected="[-60]",
    ),
    2: Sample(
        "chained assignment, comments and $ line breaks",
        "BEGIN CODE\n"
        "INT x, y, z=5\n"
        "CHAR a_1='n'\n"
        'BOOL t="TRUE"\n'
        "x=y=4\n"
        "a_1='c'\n"
        "# this is a comment\n"
        'DISPLAY: x & t & z & $ & a_1 & [#] & "last"\n'
        "END CODE",
        expected="4TRUE5\nc#last",
    ),
    3: Sample(
        "logical AND over relational operators",
        "BEGIN CODE\n"
        "INT a=100, b=200, c=300\n"
        'BOOL d="FALSE"\n'
        "d = (a < b AND c <> 200)\n"
        "DISPLAY: d\n"
        "END CODE",
        expected="TRUE",
    ),
    4: Sample(
        "unary minus",
        "BEGIN CODE\n"
        "INT a=100, b=200, c=300\n"
        "c = (-a + 1) * -2\n"
        "DISPLAY: c\n"
        "END CODE",
        expected="198",
    ),
    5: Sample(
        "plain string",
        "BEGIN CODE\n" 'DISPLAY: "Hello, World"\n' "END CODE",
        expected="Hello, World",
    ),
    6: Sample(
        "sum of two variables",
        "BEGIN CODE\n"
        "INT a=2, b=9, c=0\n"
        "c = a + b\n"
        "DISPLAY: c\n"
        "END CODE",
        expected="11",
    ),
    7: Sample(
        "initializers referring to earlier declarations",
        "BEGIN CODE\n"
        "INT x = 5\n"
        "INT y = 10\n"
        "INT sum = x + y\n"
        "DISPLAY: sum\n"
        "END CODE",
        expected="15",
    ),
    8: Sample(
        "area of a circle with PI and CEIL",
        "BEGIN CODE\n"
        "FLOAT area = PI * (CEIL(2.1) * CEIL(2.1))\n"
        "DISPLAY: area\n"
        "END CODE",
        expected="28.274334",
    ),
    9: Sample(
        "WHILE with BREAK",
        "BEGIN CODE\n"
        "INT i = 5\n"
        "WHILE (i > 0)\n"
        "BEGIN WHILE\n"
        "  i--\n"
        "  IF (i == 2)\n"
        "  BEGIN IF\n"
        "    BREAK\n"
        "  END IF\n"
        '  DISPLAY: i & " "\n'
        "END WHILE\n"
        "END CODE",
        expected="4 3 ",
    ),
    10: Sample(
        "increment inside an expression",
        "BEGIN CODE\n" "INT i = 1\n" 'DISPLAY: i++ & " " & i\n' "END CODE",
        expected="2 1",
    ),
    11: Sample(
        "leap year check on scanned input",
        "BEGIN CODE\n"
        "INT year\n"
        "SCAN: year\n"
        "IF ((year % 4 == 0 AND year % 100 <> 0) OR year % 400 == 0)\n"
        "BEGIN IF\n"
        '  DISPLAY: year & " is a leap year"\n'
        "END IF\n"
        "ELSE\n"
        "BEGIN IF\n"
        '  DISPLAY: year & " is not a leap year"\n'
        "END IF\n"
        "END CODE",
        stdin="2024\n",
        expected="2024 is a leap year",
    ),
    12: Sample(
        "CONTINUE skips odd numbers",
        "BEGIN CODE\n"
        "INT n = 0\n"
        "WHILE (n < 6)\n"
        "BEGIN WHILE\n"
        "  n += 1\n"
        "  IF (n % 2 == 1)\n"
        "  BEGIN IF\n"
        "    CONTINUE\n"
        "  END IF\n"
        '  DISPLAY: n & " "\n'
        "END WHILE\n"
        "END CODE",
        expected="2 4 6 ",
    ),
}


def get_sample(number: int) -> Sample:
    """Returns sample `number`.

    Raises:
        ValueError: If no sample has that number.
    """
    if number not in SAMPLES:
        raise ValueError(f"Unknown sample {number}; choose 1-{max(SAMPLES)}.")
    return SAMPLES[number]


__all__ = ["SAMPLES", "Sample", "get_sample"]
