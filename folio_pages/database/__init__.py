"""Portfolio content records and their loader."""

from __future__ import annotations

from .collections import collection_contains, preprocess_predicate
from .loader import load_additional_data, load_database, load_works
from .models import (
    Collection,
    Database,
    DatabaseError,
    ExternalSite,
    Link,
    LocalizedCollection,
    LocalizedWork,
    Media,
    Paragraph,
    Tag,
    Technology,
    Work,
    WorkColors,
    WorkMetadata,
    slugify,
)

__all__ = [
    "Collection",
    "Database",
    "DatabaseError",
    "ExternalSite",
    "Link",
    "LocalizedCollection",
    "LocalizedWork",
    "Media",
    "Paragraph",
    "Tag",
    "Technology",
    "Work",
    "WorkColors",
    "WorkMetadata",
    "collection_contains",
    "load_additional_data",
    "load_database",
    "load_works",
    "preprocess_predicate",
    "slugify",
]
