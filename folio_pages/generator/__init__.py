"""Render, translate and write the site's pages."""

from __future__ import annotations

from .progress import BuildStep, ProgressTracker
from .renderer import PageRenderer, TemplateRenderError
from .site_builder import BuildReport, PageFailure, SiteBuilder
from .translation import (
    Message,
    MessageCatalog,
    TranslationError,
    Translator,
    load_catalogs,
)

__all__ = [
    "BuildReport",
    "BuildStep",
    "Message",
    "MessageCatalog",
    "PageFailure",
    "PageRenderer",
    "ProgressTracker",
    "SiteBuilder",
    "TemplateRenderError",
    "TranslationError",
    "Translator",
    "load_catalogs",
]
