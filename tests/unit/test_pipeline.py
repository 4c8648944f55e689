"""Tests for PipelineLinker."""

import pytest

from appsync_api.entity_table import EntityTable
from appsync_api.errors import CompilationError, EmptyPipelineError, UnknownKeyError
from appsync_api.models import EntityHandle
from appsync_api.pipeline import PipelineLinker


@pytest.fixture
def functions() -> EntityTable[str]:
    table: EntityTable[str] = EntityTable("function")
    for key in ["a", "b", "c"]:
        table.declare(key, f"fn-{key}")
    return table


def H(key: str) -> EntityHandle:
    return EntityHandle("function", key)


class TestLink:
    """Tests for linking pipeline functions."""

    def test_preserves_order_and_duplicates(self, functions):
        """[a, b, a, c] links to [H(a), H(b), H(a), H(c)]."""
        handles = PipelineLinker("placeOrder").link(functions, ["a", "b", "a", "c"])

        assert handles == (H("a"), H("b"), H("a"), H("c"))

    def test_never_sorts(self, functions):
        """Reverse order stays reversed."""
        handles = PipelineLinker("p").link(functions, ["c", "b", "a"])

        assert [h.key for h in handles] == ["c", "b", "a"]

    def test_single_function(self, functions):
        """A one-step pipeline is valid."""
        assert PipelineLinker("p").link(functions, ["b"]) == (H("b"),)

    def test_empty_pipeline_fails(self, functions):
        """Zero functions raises EmptyPipelineError."""
        with pytest.raises(CompilationError) as exc_info:
            PipelineLinker("placeOrder").link(functions, [])

        errors = exc_info.value.errors
        assert len(errors) == 1
        assert isinstance(errors[0], EmptyPipelineError)
        assert errors[0].resolver_key == "placeOrder"

    def test_reports_every_unknown_key(self, functions):
        """All unresolvable keys are reported, not just the first."""
        with pytest.raises(CompilationError) as exc_info:
            PipelineLinker("placeOrder").link(functions, ["a", "missing1", "b", "missing2"])

        errors = exc_info.value.errors
        assert [type(e) for e in errors] == [UnknownKeyError, UnknownKeyError]
        assert [e.key for e in errors] == ["missing1", "missing2"]
        assert all(e.referrer_kind == "pipeline resolver" for e in errors)
        assert all(e.referrer_key == "placeOrder" for e in errors)
