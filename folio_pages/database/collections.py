"""Decide which works belong to a collection.

A collection's ``includes`` predicate is a boolean expression over one
variable per work ID, one ``tag_<slug>`` per tag and one
``technology_<slug>`` per technology. Shorthands make predicates easier to
write:

* ``#motion-design`` stands for ``tag_motion_design``;
* ``made with blender`` stands for ``technology_blender``;
* a token containing ``*`` is a glob over the variable names, expanded to the
  ``or`` of every matching variable.

Examples
--------
>>> preprocess_predicate("#game and made with godot", ["tag_game"])
'tag_game and technology_godot'
>>> preprocess_predicate("tag_* and not neptune", ["tag_game", "tag_music", "neptune"])
'(tag_game or tag_music) and not neptune'
"""

from __future__ import annotations

import fnmatch
import logging
import re
import typing as typ

from folio_pages.paths.expressions import EvaluationError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from folio_pages.paths.expressions import ExpressionEngine

    from .models import Collection, Database, Work

__all__ = ["collection_contains", "predicate_variables", "preprocess_predicate"]

logger = logging.getLogger(__name__)

_DASH_BETWEEN_WORDS = re.compile(r"(\S)-(?=\S)")
_TAG_SHORTHAND = re.compile(r"(?<!\S)#(\S+)")
_TECHNOLOGY_SHORTHAND = re.compile(r"(?<!\S)made with (\S+)")
_TOKEN = re.compile(r"\S+")


def _variable_name(name: str) -> str:
    return name.replace("-", "_")


def _expand_glob(token: str, variables: cabc.Sequence[str]) -> str:
    core = token.lstrip("(")
    opening = token[: len(token) - len(core)]
    pattern = core.rstrip(")")
    closing = core[len(pattern) :]
    matching = [name for name in variables if fnmatch.fnmatchcase(name, pattern)]
    expansion = f"({' or '.join(matching)})" if matching else "false"
    return f"{opening}{expansion}{closing}"


def preprocess_predicate(text: str, variables: cabc.Sequence[str]) -> str:
    """Rewrite predicate shorthands into a plain boolean expression."""
    text = _DASH_BETWEEN_WORDS.sub(r"\1_", text)
    text = _TAG_SHORTHAND.sub(r"tag_\1", text)
    text = _TECHNOLOGY_SHORTHAND.sub(r"technology_\1", text)
    return _TOKEN.sub(
        lambda match: (
            _expand_glob(match.group(0), variables)
            if "*" in match.group(0)
            else match.group(0)
        ),
        text,
    )


def predicate_variables(work: Work, database: Database) -> dict[str, bool]:
    """Return the boolean variables a predicate is evaluated against for ``work``."""
    variables = {
        _variable_name(other.id): other.id == work.id for other in database.works
    }
    for tag in database.tags:
        variables[f"tag_{_variable_name(tag.url_name)}"] = any(
            tag.referred_to_by(name) for name in work.metadata.tags
        )
    for technology in database.technologies:
        variables[f"technology_{_variable_name(technology.slug)}"] = any(
            technology.referred_to_by(name) for name in work.metadata.made_with
        )
    return variables


def collection_contains(
    collection: Collection,
    work: Work,
    database: Database,
    engine: ExpressionEngine,
) -> bool:
    """Return whether ``work`` satisfies ``collection``'s ``includes`` predicate.

    Raises
    ------
    ExpressionError
        If the predicate does not compile, fails to evaluate, or does not
        evaluate to a boolean.
    """
    variables = predicate_variables(work, database)
    predicate = preprocess_predicate(collection.includes, list(variables))
    logger.debug("collection %s: %r -> %r", collection.id, collection.includes, predicate)
    program = engine.compile(predicate)
    result = engine.evaluate(program, variables)
    if not isinstance(result, bool):
        msg = f"predicate does not evaluate to a boolean, but to {result!r}"
        raise EvaluationError(collection.includes, msg)
    return result
