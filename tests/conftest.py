import io
from collections.abc import Callable

import pytest

from codelang.codelang_eval import run_source


@pytest.fixture  # type: ignore[misc]
def run() -> Callable[..., str]:
    """Runs a whole program and returns everything it displayed."""

    def _run(source: str, stdin: str = "") -> str:
        out = io.StringIO()
        run_source(source, output=out, input_stream=io.StringIO(stdin))
        return out.getvalue()

    return _run
