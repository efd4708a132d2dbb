"""Compile and evaluate the expressions embedded in template paths.

Expressions use Jinja2's expression syntax, compiled on a sandboxed
environment with :class:`jinja2.StrictUndefined` so unknown identifiers fail
loudly instead of rendering as empty strings. Two shorthand forms are
rewritten before compilation:

``IDENT is EXPR``
    yields the value of ``EXPR`` when ``IDENT == EXPR``, else ``""``. When
    ``EXPR`` starts with ``not`` or the name of a Jinja test (``defined``,
    ``none``, ``divisibleby`` and so on) the expression is left as a test.
``IDENT except EXPR``
    yields the value of ``IDENT`` when ``IDENT != EXPR``, else ``""``.

C-style ``&&``, ``||`` and prefix ``!`` are accepted as ``and``, ``or`` and
``not``.

Examples
--------
>>> engine = ExpressionEngine()
>>> engine.evaluate(engine.compile('language is "fr"'), {"language": "fr"})
'fr'
>>> engine.evaluate(engine.compile('language is "fr"'), {"language": "en"})
''
"""

from __future__ import annotations

import dataclasses as dc
import re
import threading
import typing as typ

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.exceptions import SecurityError
from jinja2.runtime import Undefined
from jinja2.sandbox import SandboxedEnvironment

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from jinja2.environment import TemplateExpression

__all__ = [
    "EvaluationError",
    "ExpressionCache",
    "ExpressionEngine",
    "ExpressionError",
    "InvalidExpressionError",
    "Program",
    "preprocess",
]

_IDENTIFIER = r"[A-Za-z_][\w.]*"
_IS_PATTERN = re.compile(
    rf"^\s*(?P<ident>{_IDENTIFIER})\s+is\s+(?P<expr>.+?)\s*$", re.DOTALL
)
_LEADING_WORD = re.compile(r"[A-Za-z_]\w*")
# ``is`` followed by one of these stays a Jinja test.
_JINJA_TEST_WORDS = frozenset({"not", *SandboxedEnvironment().tests})
_EXCEPT_PATTERN = re.compile(
    rf"^\s*(?P<ident>{_IDENTIFIER})\s+except\s+(?P<expr>.+?)\s*$", re.DOTALL
)
_STRING_LITERAL = re.compile(r"""("(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')""")
_NEGATION = re.compile(r"!(?!=)")
_WHITESPACE = re.compile(r"\s+")

# Runtime failures a user-authored expression can trigger inside the sandbox.
_RUNTIME_ERRORS = (
    UndefinedError,
    SecurityError,
    TypeError,
    ValueError,
    AttributeError,
    ArithmeticError,
    LookupError,
)


class ExpressionError(ValueError):
    """Base class for failures compiling or evaluating an expression."""


class InvalidExpressionError(ExpressionError):
    """Raised when expression text cannot be compiled."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"Invalid expression {text!r}: {reason}")


class EvaluationError(ExpressionError):
    """Raised when a compiled expression fails against its variables."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"Could not evaluate {text!r}: {reason}")


def _rewrite_operators(text: str) -> str:
    parts = _STRING_LITERAL.split(text)
    for position in range(0, len(parts), 2):
        code = parts[position].replace("&&", " and ").replace("||", " or ")
        parts[position] = _WHITESPACE.sub(" ", _NEGATION.sub(" not ", code))
    return "".join(parts).strip()


def _names_a_test(expr: str) -> bool:
    word = _LEADING_WORD.match(expr)
    return word is not None and word.group() in _JINJA_TEST_WORDS


def preprocess(text: str) -> str:
    """Rewrite shorthand forms of ``text`` into plain Jinja2 expression syntax.

    Examples
    --------
    >>> preprocess('lang is "fr"')
    '("fr") if (lang) == ("fr") else ""'
    >>> preprocess("work.wip && !tag")
    'work.wip and not tag'
    >>> preprocess("work is defined")
    'work is defined'
    """
    rewritten = _rewrite_operators(text)
    if (match := _IS_PATTERN.match(rewritten)) and not _names_a_test(
        match.group("expr")
    ):
        ident, expr = match.group("ident", "expr")
        return f'({expr}) if ({ident}) == ({expr}) else ""'
    if match := _EXCEPT_PATTERN.match(rewritten):
        ident, expr = match.group("ident", "expr")
        return f'({ident}) if ({ident}) != ({expr}) else ""'
    return rewritten


@dc.dataclass(frozen=True, slots=True)
class Program:
    """A compiled expression ready to be evaluated."""

    text: str
    source: str
    expression: TemplateExpression = dc.field(repr=False, compare=False)


class ExpressionCache:
    """Thread-safe memo of compiled programs keyed by rewritten source text.

    Two threads compiling the same text concurrently may both compile it; the
    last one stored wins and both results are equivalent.
    """

    def __init__(self) -> None:
        self._programs: dict[str, Program] = {}
        self._lock = threading.Lock()

    def get(self, source: str) -> Program | None:
        with self._lock:
            return self._programs.get(source)

    def put(self, program: Program) -> None:
        with self._lock:
            self._programs[program.source] = program

    def __len__(self) -> int:
        with self._lock:
            return len(self._programs)

    def __contains__(self, source: object) -> bool:
        with self._lock:
            return source in self._programs


class ExpressionEngine:
    """Compile expression text into cached programs and evaluate them."""

    def __init__(self, cache: ExpressionCache | None = None) -> None:
        self.cache = cache if cache is not None else ExpressionCache()
        self._environment = SandboxedEnvironment(undefined=StrictUndefined)

    def compile(self, text: str) -> Program:
        """Return the program for ``text``, compiling it on first use.

        Raises
        ------
        InvalidExpressionError
            If ``text`` is not a valid expression.
        """
        source = preprocess(text)
        cached = self.cache.get(source)
        if cached is not None:
            return cached
        try:
            expression = self._environment.compile_expression(
                source, undefined_to_none=False
            )
        except TemplateSyntaxError as exc:
            raise InvalidExpressionError(text, exc.message or str(exc)) from exc
        program = Program(text=text, source=source, expression=expression)
        self.cache.put(program)
        return program

    def evaluate(
        self, program: Program, variables: cabc.Mapping[str, object]
    ) -> object:
        """Evaluate ``program`` against ``variables``.

        Raises
        ------
        EvaluationError
            If the expression references an unknown identifier or attribute,
            or fails at runtime.
        """
        try:
            value = program.expression(**variables)
        except _RUNTIME_ERRORS as exc:
            raise EvaluationError(program.text, str(exc)) from exc
        if isinstance(value, Undefined):
            raise EvaluationError(program.text, "result is undefined")
        return value

    def evaluate_text(self, text: str, variables: cabc.Mapping[str, object]) -> object:
        """Compile ``text`` (through the cache) and evaluate it."""
        return self.evaluate(self.compile(text), variables)
