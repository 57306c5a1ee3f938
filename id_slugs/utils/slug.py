"""URL slug generation utilities.

Slug derivation is kept free of any store access so it can be previewed and
tested on its own.
"""

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from slugify import slugify

from id_slugs.constants import PREVIEW_LIMIT, SLUG_SEPARATOR

if TYPE_CHECKING:
    from id_slugs.models.documents import Document

_PUNCTUATION_RE = re.compile(r"[^A-Za-z0-9_\s-]")


def generate_slug(text: str | None, prefix: str = "", suffix: str = "") -> str:
    """Generate a URL-safe slug from text.

    Punctuation and symbols are dropped and runs of whitespace, underscores and
    hyphens collapse to a single hyphen. Only ASCII letters and digits are
    kept, so accented and non-Latin letters are dropped rather than
    transliterated. Returns an empty string when nothing usable is left.

    Args:
        text: Input text (e.g., document title)
        prefix: Prepended as ``prefix-``
        suffix: Appended as ``-suffix``

    Returns:
        URL-safe slug, or ``""``

    Examples:
        >>> generate_slug("Hello, World!")
        'hello-world'
        >>> generate_slug("Title", prefix="blog")
        'blog-title'
        >>> generate_slug("Title", suffix="v2")
        'title-v2'
    """
    if not text:
        return ""

    normalized = _PUNCTUATION_RE.sub("", text.lower().strip())
    slug = slugify(normalized, separator=SLUG_SEPARATOR)

    if not slug:
        return ""

    if prefix:
        slug = f"{prefix}{SLUG_SEPARATOR}{slug}"
    if suffix:
        slug = f"{slug}{SLUG_SEPARATOR}{suffix}"

    return slug


def disambiguate_slug(slug: str, token: str) -> str:
    """Append a disambiguation token to a slug that is already taken."""
    return f"{slug}{SLUG_SEPARATOR}{token}"


def preview_slugs(
    documents: Iterable["Document"],
    source_field: str,
    prefix: str = "",
    suffix: str = "",
    limit: int = PREVIEW_LIMIT,
) -> list[tuple["Document", str]]:
    """
    Pair the first documents with the slug they would receive.

    Collisions are not probed, so the preview shows base slugs only.

    Args:
        documents: Candidate documents
        source_field: Configured source field
        prefix: Slug prefix
        suffix: Slug suffix
        limit: Maximum number of documents to preview

    Returns:
        List of (document, slug) tuples
    """
    preview = []
    for document in documents:
        if len(preview) >= limit:
            break
        slug = generate_slug(document.resolve_source_text(source_field), prefix, suffix)
        preview.append((document, slug))
    return preview
