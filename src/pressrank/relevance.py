"""Query-to-article relevance scoring for full-text search."""

from __future__ import annotations

import logging

from pressrank.models import Article, SearchResult
from pressrank.text import extract_text, highlight, snippet, tokenize

logger = logging.getLogger(__name__)

# ── Weights (tuneable) ─────────────────────────────────────────────────────
# A matching field scores more than a third of its weight and at most all of
# it, so any hit in a field outranks every hit confined to lower fields.
_W_EXACT_TITLE = 40.0
_W_TITLE = 27.0
_W_SUBTITLE = 9.0
_W_CONTENT = 3.0
_W_TAG = 1.0


def _field_score(text: str, phrase: str, terms: list[str], weight: float) -> float:
    """``weight * (1 + term coverage + whole-phrase hit) / 3``; 0.0 without a hit."""
    if not text:
        return 0.0
    lowered = text.lower()
    hits = sum(1 for term in terms if term in lowered)
    if not hits:
        return 0.0
    bonus = 1.0 if phrase in lowered else 0.0
    return weight * (1 + hits / len(terms) + bonus) / 3


def score(article: Article, query: str) -> float:
    """Compute the relevance of *article* for *query*; 0.0 means no overlap."""
    terms = tokenize(query)
    if not terms:
        return 0.0
    phrase = " ".join(terms)

    total = _W_EXACT_TITLE if " ".join(tokenize(article.title)) == phrase else 0.0
    total += _field_score(article.title, phrase, terms, _W_TITLE)
    total += _field_score(article.subtitle, phrase, terms, _W_SUBTITLE)
    total += _field_score(extract_text(article.content), phrase, terms, _W_CONTENT)
    total += _field_score("\n".join(article.tags), phrase, terms, _W_TAG)

    return total


def highlights(article: Article, query: str) -> dict[str, str]:
    """Marked-up title/subtitle plus a content snippet around the first hit."""
    terms = tokenize(query)
    phrase = " ".join(terms)
    found: dict[str, str] = {}

    if phrase and phrase in article.title.lower():
        found["title"] = highlight(article.title, terms)
    if phrase and article.subtitle and phrase in article.subtitle.lower():
        found["subtitle"] = highlight(article.subtitle, terms)

    cut = snippet(extract_text(article.content), terms)
    if cut:
        found["content"] = cut
    return found


def _sort_key(result: SearchResult) -> tuple[float, float, int]:
    published = result.article.published_at
    ts = published.timestamp() if published else float("-inf")
    return (-result.relevance_score, -ts, result.article.id)


def rank(articles: list[Article], query: str) -> list[SearchResult]:
    """Score articles and sort matches descending by score (newest first on ties).

    Articles with no overlap are dropped.
    """
    if not tokenize(query):
        return []

    results = []
    for article in articles:
        s = score(article, query)
        if s > 0:
            results.append(
                SearchResult(
                    article=article,
                    relevance_score=s,
                    highlights=highlights(article, query),
                )
            )

    results.sort(key=_sort_key)
    logger.info(
        "Ranked %d/%d articles for %r; top score=%.1f",
        len(results), len(articles), query, results[0].relevance_score if results else 0,
    )
    return results
