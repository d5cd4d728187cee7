import os
from typing import Any

import pytest

from stackc.stackc_compile import Compiler
from stackc.stackc_vm import run_assembly

# Monkeypatch coverage to bypass teardown crash in act/docker
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


@pytest.fixture
def compile_ok() -> Any:
    """Compiles source that must succeed and returns its assembly lines (QUIT included)."""

    def _compile(source: str) -> list[str]:
        result = Compiler().compile(source)
        assert result.ok, f"expected {source!r} to compile"
        return result.output.splitlines()

    return _compile


@pytest.fixture
def run_program() -> Any:
    """Compiles and executes source, returning the values it writes."""

    def _run(source: str, inputs: list[int] | None = None) -> list[int]:
        result = Compiler().compile(source)
        assert result.ok, f"expected {source!r} to compile"
        return run_assembly(result.output, inputs or [])

    return _run
