"""Resolve template paths holding dynamic segments into output paths.

A path segment is dynamic when it is ``:expr`` or ``[expr]``. On the final
segment a template suffix (``.pug``, ``.html``, ``.pdf.pug`` or ``.pdf.html``)
is set aside before matching, so ``:work.pdf.pug`` holds the expression
``work``.

Evaluating a dynamic segment decides its fate:

* ``True`` keeps the literal segment text;
* ``False``, ``None`` or an empty string means the page is not rendered for
  this candidate;
* anything else is stringified and replaces the segment, with the extension
  re-appended on the final segment.

Examples
--------
>>> dynamic_path_expressions("/src/:language/:work/player.pug")
['language', 'work']
>>> finalize_extension("dist/fr/cv.pdf.pug")
'dist/fr/cv.pdf'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ
from pathlib import Path, PurePath

if typ.TYPE_CHECKING:
    from .expressions import ExpressionEngine
    from .hydration import Hydration

__all__ = [
    "DynamicSegment",
    "dynamic_path_expressions",
    "evaluate_dynamic_path",
    "finalize_extension",
    "output_path",
    "parse_segment",
]

logger = logging.getLogger(__name__)

_DYNAMIC_SEGMENT = re.compile(r"^(?::(?P<colon>.+)|\[(?P<bracket>.+)\])$", re.DOTALL)
_PDF_SUFFIXES = (".pdf.html", ".pdf.pug")
_TEMPLATE_SUFFIXES = (*_PDF_SUFFIXES, ".pug", ".html")


@dc.dataclass(frozen=True, slots=True)
class DynamicSegment:
    """A path segment holding an expression."""

    expression: str
    extension: str = ""


def _segments(path: str | PurePath) -> list[str]:
    text = path.as_posix() if isinstance(path, PurePath) else path
    return text.split("/")


def _split_suffix(segment: str) -> tuple[str, str]:
    for suffix in _TEMPLATE_SUFFIXES:
        if segment.endswith(suffix) and len(segment) > len(suffix):
            return segment.removesuffix(suffix), suffix
    return segment, ""


def parse_segment(segment: str, *, final: bool = False) -> DynamicSegment | None:
    """Return the dynamic part of ``segment``, or ``None`` for a literal segment.

    On the final segment only a known template suffix is set aside, so dots
    inside the expression are kept.

    Examples
    --------
    >>> parse_segment('[language is "fr"].html', final=True)
    DynamicSegment(expression='language is "fr"', extension='.html')
    >>> parse_segment(":work.pdf.pug", final=True)
    DynamicSegment(expression='work', extension='.pdf.pug')
    >>> parse_segment("[work.wip]", final=True)
    DynamicSegment(expression='work.wip', extension='')
    >>> parse_segment("about.html", final=True) is None
    True
    """
    stem, extension = _split_suffix(segment) if final else (segment, "")
    match = _DYNAMIC_SEGMENT.match(stem)
    if match is None:
        return None
    expression = match.group("colon") or match.group("bracket")
    return DynamicSegment(expression=expression, extension=extension)


def dynamic_path_expressions(path: str | PurePath) -> list[str]:
    """Return the expression texts of ``path``'s dynamic segments, in order."""
    segments = _segments(path)
    last = len(segments) - 1
    expressions: list[str] = []
    for position, segment in enumerate(segments):
        dynamic = parse_segment(segment, final=position == last)
        if dynamic is not None:
            expressions.append(dynamic.expression)
    return expressions


def _substitute(segment: str, dynamic: DynamicSegment, value: object) -> str | None:
    if value is True:
        return segment
    if value is False or value is None:
        return None
    text = str(value)
    if not text:
        return None
    return f"{text}{dynamic.extension}"


def evaluate_dynamic_path(
    hydration: Hydration, path: str | PurePath, engine: ExpressionEngine
) -> str | None:
    """Substitute every dynamic segment of ``path`` for ``hydration``.

    Returns
    -------
    str | None
        The substituted path, or ``None`` when some segment evaluated to a
        falsy result and no page should be rendered for this candidate.

    Raises
    ------
    ExpressionError
        If a segment's expression does not compile or fails to evaluate.
    """
    segments = _segments(path)
    last = len(segments) - 1
    variables = hydration.variables()
    resolved: list[str] = []
    for position, segment in enumerate(segments):
        dynamic = parse_segment(segment, final=position == last)
        if dynamic is None:
            resolved.append(segment)
            continue
        value = engine.evaluate(engine.compile(dynamic.expression), variables)
        replacement = _substitute(segment, dynamic, value)
        if replacement is None:
            logger.debug(
                "skipping %s for %r: %r evaluated to %r",
                path,
                hydration.name,
                dynamic.expression,
                value,
            )
            return None
        resolved.append(replacement)
    return "/".join(resolved)


def finalize_extension(path: str) -> str:
    """Map a resolved template path to its output file name.

    ``.pdf.html`` and ``.pdf.pug`` collapse to ``.pdf``; ``.pug`` becomes
    ``.html``; anything else is left alone.
    """
    for suffix in _PDF_SUFFIXES:
        if path.endswith(suffix):
            return path.removesuffix(suffix) + ".pdf"
    if path.endswith(".pug"):
        return path.removesuffix(".pug") + ".html"
    return path


def output_path(
    hydration: Hydration,
    template: Path,
    *,
    templates_dir: Path,
    output_dir: Path,
    engine: ExpressionEngine,
) -> Path | None:
    """Return where ``template`` renders for ``hydration``, or ``None`` to skip.

    Parameters
    ----------
    hydration : Hydration
        The candidate object and language.
    template : Path
        Template file, inside ``templates_dir``.
    templates_dir : Path
        Root of the template tree.
    output_dir : Path
        Root of the generated site.
    engine : ExpressionEngine
        Engine used to evaluate the dynamic segments.

    Examples
    --------
    >>> from folio_pages.paths import ExpressionEngine, Hydration
    >>> output_path(
    ...     Hydration(language="fr"),
    ...     Path("src/:language/index.pug"),
    ...     templates_dir=Path("src"),
    ...     output_dir=Path("dist"),
    ...     engine=ExpressionEngine(),
    ... )
    PosixPath('dist/fr/index.html')
    """
    relative = template.relative_to(templates_dir)
    evaluated = evaluate_dynamic_path(hydration, relative, engine)
    if evaluated is None:
        return None
    return output_dir / finalize_extension(evaluated)
