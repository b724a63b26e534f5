"""HTML reduction strategies.

Each strategy is a pure function from raw HTML to either a reduced payload or
``None`` when it cannot produce something usable. The cascade decides what to
do with ``None``; strategies never fall back on their own.

Strategies, from most to least aggressive:
- ``extract_structured_data``: the best JSON-LD Recipe object on the page
- ``select_recipe_section``: the highest scoring recipe-looking subtree
- ``filter_content``: the page body with boilerplate removed
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator, Sequence
from typing import Any

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

MAX_GRAPH_DEPTH = 10

REQUIRED_FIELD_WEIGHT = 20
OPTIONAL_FIELD_WEIGHT = 10
REQUIRED_FIELDS = ("name", "recipeIngredient", "recipeInstructions")
OPTIONAL_FIELDS = ("totalTime", "recipeYield", "description", "image")

SECTION_CANDIDATES = "article, section, div[class*=recipe i], div[id*=recipe i], main"

NON_CONTENT_TAGS = (
    "script",
    "style",
    "noscript",
    "nav",
    "header",
    "footer",
    "iframe",
    "embed",
    "object",
)

AD_PATTERN = re.compile(r"(?:^|[\s_-])(?:ad|ads|advert\w*)(?:[\s_-]|$)", re.IGNORECASE)
SOCIAL_PATTERN = re.compile(r"social|share", re.IGNORECASE)
COMMENT_PATTERN = re.compile(r"comment", re.IGNORECASE)
SIDEBAR_PATTERN = re.compile(r"sidebar", re.IGNORECASE)
HIDDEN_STYLE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)

STRIPPED_ATTRIBUTES = frozenset({"style", "class", "id"})


# ----------------------------------------------------------------------------
# Structured data
# ----------------------------------------------------------------------------


def _is_recipe_type(value: Any) -> bool:
    if isinstance(value, list):
        return any(_is_recipe_type(v) for v in value)
    if not isinstance(value, str):
        return False
    # Accept "Recipe", "schema:Recipe" and "https://schema.org/Recipe"
    return re.split(r"[/:]", value)[-1] == "Recipe"


def _iter_recipe_nodes(node: Any, depth: int = 0) -> Iterator[dict[str, Any]]:
    """Yield recipe-typed objects, flattening lists and @graph wrappers."""
    if depth > MAX_GRAPH_DEPTH:
        return
    if isinstance(node, list):
        for item in node:
            yield from _iter_recipe_nodes(item, depth + 1)
    elif isinstance(node, dict):
        if _is_recipe_type(node.get("@type")):
            yield node
        if "@graph" in node:
            yield from _iter_recipe_nodes(node["@graph"], depth + 1)


def completeness_score(node: dict[str, Any]) -> int:
    """Score a JSON-LD recipe object by field presence (0-100).

    Example:
        >>> completeness_score({"name": "Pie", "recipeIngredient": ["flour"]})
        40
    """
    score = sum(REQUIRED_FIELD_WEIGHT for name in REQUIRED_FIELDS if node.get(name))
    score += sum(OPTIONAL_FIELD_WEIGHT for name in OPTIONAL_FIELDS if node.get(name))
    return min(score, 100)


def extract_structured_data(html: str, min_completeness: int) -> str | None:
    """Return the most complete JSON-LD Recipe object as a JSON string.

    Args:
        html: Raw page markup
        min_completeness: Minimum completeness score the best candidate needs

    Returns:
        Serialized recipe object, or None when no candidate is good enough
    """
    soup = BeautifulSoup(html, "html.parser")
    scripts = soup.find_all("script", attrs={"type": re.compile(r"application/ld\+json", re.I)})

    best: dict[str, Any] | None = None
    best_score = -1
    for script in scripts:
        text = script.get_text()
        if not text.strip():
            continue
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping invalid JSON-LD block: {e}")
            continue

        for node in _iter_recipe_nodes(data):
            score = completeness_score(node)
            if score > best_score:
                best, best_score = node, score

    if best is None:
        logger.debug("No JSON-LD recipe found")
        return None
    if best_score < min_completeness:
        logger.debug(f"JSON-LD recipe too incomplete: {best_score} < {min_completeness}")
        return None

    logger.debug(f"Using JSON-LD recipe with completeness {best_score}")
    return json.dumps(best, ensure_ascii=False)


# ----------------------------------------------------------------------------
# Shared cleanup
# ----------------------------------------------------------------------------


def _identity(tag: Tag) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    return " ".join([*classes, str(tag.get("id") or "")])


def _remove(tags: Sequence[Tag]) -> int:
    removed = 0
    for tag in tags:
        # Children of an already removed parent are gone too
        if tag.decomposed:
            continue
        tag.decompose()
        removed += 1
    return removed


def remove_noise(root: Tag, include_sidebar: bool = False) -> int:
    """Remove non-content elements below ``root`` in place.

    Returns:
        Number of elements removed
    """
    patterns = [AD_PATTERN, SOCIAL_PATTERN, COMMENT_PATTERN]
    if include_sidebar:
        patterns.append(SIDEBAR_PATTERN)

    removed = _remove(root.find_all(NON_CONTENT_TAGS))
    removed += _remove(
        root.find_all(lambda tag: any(p.search(_identity(tag)) for p in patterns))
    )
    removed += _remove(root.find_all(style=HIDDEN_STYLE))
    return removed


def strip_attributes(root: Tag) -> None:
    """Drop style, class, id, data-* and on* attributes from every descendant."""
    for tag in root.find_all(True):
        tag.attrs = {
            name: value
            for name, value in tag.attrs.items()
            if name.lower() not in STRIPPED_ATTRIBUTES
            and not name.lower().startswith(("data-", "on"))
        }


# ----------------------------------------------------------------------------
# Section-based
# ----------------------------------------------------------------------------


def section_score(element: Tag, keywords: Sequence[str], text_threshold: int) -> int:
    """Score a candidate subtree for how recipe-like it looks (0-100)."""
    text = element.get_text(" ", strip=True)
    lowered = text.lower()

    score = sum(10 for keyword in keywords if keyword.lower() in lowered)
    if len(element.find_all(["ul", "ol"])) >= 2:
        score += 20
    if len(element.find_all(["h2", "h3"])) >= 2:
        score += 10
    if len(text) > text_threshold:
        score += 10
    return min(score, 100)


def select_recipe_section(
    html: str,
    keywords: Sequence[str],
    min_confidence: int,
    text_threshold: int,
    min_output_size: int,
) -> str | None:
    """Return the cleaned inner markup of the most recipe-like subtree.

    Candidates are article, section and main elements plus divs whose class
    or id mentions "recipe". Ties keep the first candidate in document order.
    """
    soup = BeautifulSoup(html, "html.parser")

    best: Tag | None = None
    best_score = 0
    for candidate in soup.select(SECTION_CANDIDATES):
        score = section_score(candidate, keywords, text_threshold)
        if score > best_score:
            best, best_score = candidate, score

    if best is None or best_score < min_confidence:
        logger.debug(f"No recipe section above confidence {min_confidence} (best {best_score})")
        return None

    remove_noise(best)
    strip_attributes(best)
    output = best.decode_contents().strip()

    if len(output) < min_output_size:
        logger.debug(f"Recipe section too small: {len(output)} < {min_output_size}")
        return None

    logger.debug(f"Using <{best.name}> section with score {best_score}")
    return output


# ----------------------------------------------------------------------------
# Content filter
# ----------------------------------------------------------------------------


def filter_content(html: str, min_output_size: int) -> str | None:
    """Return the page body with boilerplate, hidden nodes and attributes removed."""
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup

    removed = remove_noise(root, include_sidebar=True)
    strip_attributes(root)
    output = root.decode_contents().strip()

    if len(output) < min_output_size:
        logger.debug(f"Filtered content too small: {len(output)} < {min_output_size}")
        return None

    logger.debug(f"Content filter removed {removed} elements")
    return output
