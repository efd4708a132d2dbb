"""Unit tests for the path expression engine."""

from __future__ import annotations

import threading

import pytest

from folio_pages.paths.expressions import (
    EvaluationError,
    ExpressionCache,
    ExpressionEngine,
    InvalidExpressionError,
    preprocess,
)


@pytest.fixture
def engine() -> ExpressionEngine:
    """Return a fresh engine with an empty cache."""
    return ExpressionEngine()


def test_compile_reuses_cached_program(engine: ExpressionEngine) -> None:
    """Compiling the same text twice should return the very same program."""
    first = engine.compile('language is "fr"')
    second = engine.compile('language is "fr"')

    assert first is second, "expected the second compile to hit the cache"
    assert len(engine.cache) == 1, f"expected one cached program, got {len(engine.cache)}"
    assert engine.evaluate(first, {"language": "fr"}) == engine.evaluate(
        second, {"language": "fr"}
    ), "expected evaluation to be pure"


def test_cache_is_keyed_on_rewritten_text(engine: ExpressionEngine) -> None:
    """Spellings that rewrite to the same source should share a program."""
    first = engine.compile("work && tag")
    second = engine.compile("work and tag")

    assert first.source == second.source, (
        f"expected identical sources, got {first.source!r} and {second.source!r}"
    )
    assert first.source in engine.cache, "expected the rewritten source as cache key"


@pytest.mark.parametrize(
    ("language", "expected"),
    [("fr", "fr"), ("en", "")],
)
def test_is_yields_value_or_empty_string(
    engine: ExpressionEngine, language: str, expected: str
) -> None:
    """``IDENT is EXPR`` should yield EXPR's value on equality, never ``True``."""
    result = engine.evaluate_text('language is "fr"', {"language": language})

    assert result == expected, f"expected {expected!r} for {language}, got {result!r}"
    assert result is not True, "expected a string rather than a boolean"


@pytest.mark.parametrize(
    ("language", "expected"),
    [("fr", ""), ("en", "en")],
)
def test_except_yields_identifier_unless_equal(
    engine: ExpressionEngine, language: str, expected: str
) -> None:
    """``IDENT except EXPR`` should yield IDENT's value unless it equals EXPR."""
    result = engine.evaluate_text('lang except "fr"', {"lang": language})

    assert result == expected, f"expected {expected!r} for {language}, got {result!r}"


def test_is_uses_value_equality_without_coercion(engine: ExpressionEngine) -> None:
    """Numbers compare by value; strings never equal numbers."""
    assert engine.evaluate_text("count is 1.0", {"count": 1}) == 1.0, (
        "expected 1 == 1.0 to hold"
    )
    assert engine.evaluate_text('count is "1"', {"count": 1}) == "", (
        "expected '1' and 1 to differ"
    )


def test_c_style_operators_are_accepted(engine: ExpressionEngine) -> None:
    """``&&``, ``||`` and ``!`` should behave as ``and``, ``or`` and ``not``."""
    variables = {"a": True, "b": False}

    assert engine.evaluate_text("a && !b", variables) is True, "expected a && !b"
    assert engine.evaluate_text("b || a", variables) is True, "expected b || a"
    assert engine.evaluate_text("a != b", variables) is True, "expected != untouched"


def test_operators_inside_string_literals_are_kept() -> None:
    """Rewriting should leave quoted text alone."""
    assert preprocess('title is "Hi!"') == '("Hi!") if (title) == ("Hi!") else ""', (
        "expected the exclamation mark inside the literal to survive"
    )


@pytest.mark.parametrize(
    ("text", "variables", "expected"),
    [
        ("work is defined", {"work": "neptune"}, True),
        ("work is defined", {}, False),
        ("work is none", {"work": None}, True),
        ("count is divisibleby(3)", {"count": 9}, True),
        ("count is even", {"count": 3}, False),
        ("language is not none", {"language": "fr"}, True),
    ],
)
def test_jinja_tests_are_not_rewritten(
    engine: ExpressionEngine,
    text: str,
    variables: dict[str, object],
    expected: bool,  # noqa: FBT001
) -> None:
    """``is`` followed by a Jinja test name should stay a test."""
    assert preprocess(text) == text, f"expected {text!r} to be left alone"
    assert engine.evaluate_text(text, variables) is expected, (
        f"expected {text!r} to be {expected} for {variables!r}"
    )


def test_identifiers_that_are_not_tests_are_rewritten() -> None:
    """A bare identifier after ``is`` is compared rather than tested."""
    assert preprocess("language is lang") == '(lang) if (language) == (lang) else ""', (
        "expected the comparison shorthand"
    )


def test_attribute_access_on_objects(engine: ExpressionEngine) -> None:
    """Expressions should reach attributes of the hydrated objects."""

    class Work:
        id = "neptune"
        wip = False

    assert engine.evaluate_text("work.id", {"work": Work()}) == "neptune", (
        "expected attribute access to return the work ID"
    )
    assert engine.evaluate_text("not work.wip", {"work": Work()}) is True, (
        "expected boolean expressions over attributes"
    )


def test_invalid_expression_reports_text(engine: ExpressionEngine) -> None:
    """A syntax error should surface as InvalidExpressionError with the text."""
    with pytest.raises(InvalidExpressionError) as excinfo:
        engine.compile("work.(")

    assert excinfo.value.text == "work.(", (
        f"expected the original text on the error, got {excinfo.value.text!r}"
    )


def test_unknown_identifier_is_an_evaluation_error(engine: ExpressionEngine) -> None:
    """Unknown names must not silently evaluate to an empty value."""
    with pytest.raises(EvaluationError):
        engine.evaluate_text("nonexistent", {"work": None})


def test_comparison_with_unknown_identifier_fails(engine: ExpressionEngine) -> None:
    """Comparing an unknown name should fail rather than compare as unequal."""
    with pytest.raises(EvaluationError):
        engine.evaluate_text('nonexistent is "fr"', {})


def test_missing_attribute_is_an_evaluation_error(engine: ExpressionEngine) -> None:
    """Reaching into an absent object should fail loudly."""
    with pytest.raises(EvaluationError):
        engine.evaluate_text("work.id", {"work": None})


def test_runtime_failure_is_an_evaluation_error(engine: ExpressionEngine) -> None:
    """Runtime exceptions inside the expression should be wrapped."""
    with pytest.raises(EvaluationError):
        engine.evaluate_text("1 // zero", {"zero": 0})


def test_shared_cache_across_threads() -> None:
    """Concurrent compiles should leave one program per source."""
    cache = ExpressionCache()
    engine = ExpressionEngine(cache)
    results: list[object] = []

    def compile_many() -> None:
        for _ in range(50):
            program = engine.compile("work.id")
            results.append(engine.evaluate(program, {"work": {"id": "x"}}))

    threads = [threading.Thread(target=compile_many) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == 1, f"expected a single cached program, got {len(cache)}"
    assert set(results) == {"x"}, f"expected every evaluation to yield 'x', got {set(results)!r}"
