"""
Content relevance search.

Ranks a user's processed documents against a free-text query without a
search index. Each document is scored on four fields (title, extracted
content, summary, keywords); the best field decides the document's score,
match type and excerpt.

Scoring:
    title     0.9 * partial_match_score
    content   0.7 * partial_match_score
    summary   0.6 * partial_match_score
    keywords  0.5 + 0.3 * keyword_match_score (only when a keyword matches)

Per query word, partial_match_score awards 1.0 for an exact word, 0.7 when a
word contains or is contained in the query word, 0.5 when the query word
occurs anywhere in the raw text. The mean over query words is the score.

Dependencies: docflow.models.search
System role: Ranking engine behind the search endpoint
"""

import logging
import uuid
from dataclasses import dataclass

from docflow.models.search import MatchType, SearchResult

logger = logging.getLogger(__name__)

TITLE_WEIGHT = 0.9
CONTENT_WEIGHT = 0.7
SUMMARY_WEIGHT = 0.6
KEYWORDS_BASE = 0.5
KEYWORDS_WEIGHT = 0.3

EXACT_AWARD = 1.0
PARTIAL_AWARD = 0.7
SUBSTRING_AWARD = 0.5

EXCERPT_STRIDE = 50
DEFAULT_EXCERPT_LENGTH = 200
NO_CONTENT = "No content available"
ELLIPSIS = "..."


@dataclass(frozen=True)
class SearchCandidate:
    """Searchable view of a document's latest completed ingestion."""

    document_id: uuid.UUID
    title: str
    extracted_text: str | None = None
    summary: str | None = None
    keywords: tuple[str, ...] = ()


def extract_query_keywords(query: str) -> list[str]:
    """Lowercase query words longer than two characters."""
    return [word for word in query.lower().split() if len(word) > 2]


def _word_award(query_word: str, words: list[str]) -> float:
    if query_word in words:
        return EXACT_AWARD
    if any(query_word in word or word in query_word for word in words):
        return PARTIAL_AWARD
    return 0.0


def partial_match_score(text: str | None, query_keywords: list[str]) -> float:
    """
    Fraction of query words found in ``text``, weighted by match quality.

    Args:
        text: Field text (None or empty scores 0)
        query_keywords: Lowercased query words

    Returns:
        float: Score in [0, 1]
    """
    if not text or not query_keywords:
        return 0.0

    lowered = text.lower()
    words = lowered.split()
    total = 0.0
    for query_word in query_keywords:
        award = _word_award(query_word, words)
        if not award and query_word in lowered:
            award = SUBSTRING_AWARD
        total += award
    return min(total / len(query_keywords), 1.0)


def keyword_match_score(
    keywords: list[str] | tuple[str, ...] | None,
    query_keywords: list[str],
) -> tuple[float, list[str]]:
    """
    Score query words against extracted keywords.

    Args:
        keywords: Keywords extracted by the worker
        query_keywords: Lowercased query words

    Returns:
        tuple: (score in [0, 1], matching keywords without duplicates)
    """
    if not keywords or not query_keywords:
        return 0.0, []

    pairs = [(keyword, keyword.lower()) for keyword in keywords if keyword.strip()]
    lowered = [lowered_keyword for _, lowered_keyword in pairs]
    matching: list[str] = []
    seen: set[str] = set()
    total = 0.0
    for query_word in query_keywords:
        award = _word_award(query_word, lowered)
        if not award:
            continue
        total += award
        for keyword, lowered_keyword in pairs:
            if query_word in lowered_keyword or lowered_keyword in query_word:
                if lowered_keyword not in seen:
                    seen.add(lowered_keyword)
                    matching.append(keyword)
    return min(total / len(query_keywords), 1.0), matching


def extract_relevant_excerpt_partial(
    text: str | None,
    query_keywords: list[str],
    max_length: int = DEFAULT_EXCERPT_LENGTH,
) -> str:
    """
    Cut the window of ``text`` that mentions the most query words.

    Windows of ``max_length`` characters are scanned in 50-character
    strides. Without any hit the excerpt centres on the first keyword
    occurrence, and failing that starts at the beginning of the text.
    Truncated ends are marked with "...".

    Args:
        text: Extracted document text
        query_keywords: Lowercased query words
        max_length: Excerpt length before ellipses

    Returns:
        str: Excerpt, or "No content available" for empty text
    """
    if not text:
        return NO_CONTENT

    lowered = text.lower()
    distinct = list(dict.fromkeys(query_keywords))

    best_start = 0
    best_hits = 0
    for start in range(0, max(len(text) - max_length, 0) + 1, EXCERPT_STRIDE):
        window = lowered[start:start + max_length]
        hits = sum(1 for keyword in distinct if keyword in window)
        if hits > best_hits:
            best_start, best_hits = start, hits

    if best_hits:
        start = best_start
    else:
        positions = [lowered.find(keyword) for keyword in distinct if keyword in lowered]
        start = max(0, min(positions) - max_length // 2) if positions else 0

    end = min(len(text), start + max_length)
    excerpt = text[start:end]
    if start > 0:
        excerpt = ELLIPSIS + excerpt
    if end < len(text):
        excerpt = excerpt + ELLIPSIS
    return excerpt


class ContentRelevanceSearch:
    """Multi-field heuristic ranker over search candidates."""

    def __init__(self, excerpt_length: int = DEFAULT_EXCERPT_LENGTH) -> None:
        self.excerpt_length = excerpt_length

    def score(
        self,
        candidate: SearchCandidate,
        query_keywords: list[str],
    ) -> SearchResult | None:
        """
        Score one candidate on its best field.

        Returns:
            SearchResult, or None when no field matches
        """
        fields: list[tuple[MatchType, float]] = [
            ("title", TITLE_WEIGHT * partial_match_score(candidate.title, query_keywords)),
            ("content", CONTENT_WEIGHT * partial_match_score(candidate.extracted_text, query_keywords)),
            ("summary", SUMMARY_WEIGHT * partial_match_score(candidate.summary, query_keywords)),
        ]
        keyword_score, matching = keyword_match_score(candidate.keywords, query_keywords)
        if matching:
            fields.append(("keywords", KEYWORDS_BASE + KEYWORDS_WEIGHT * keyword_score))

        match_type, best = fields[0]
        for field_type, field_score in fields[1:]:
            if field_score > best:
                match_type, best = field_type, field_score
        if best <= 0:
            return None

        if match_type == "title":
            excerpt = candidate.title
        elif match_type == "summary":
            excerpt = candidate.summary or ""
        elif match_type == "content":
            excerpt = extract_relevant_excerpt_partial(
                candidate.extracted_text, query_keywords, self.excerpt_length
            )
        else:
            excerpt = "Keywords: " + ", ".join(matching)

        return SearchResult(
            document_id=candidate.document_id,
            document_title=candidate.title,
            relevance_score=best,
            excerpt=excerpt,
            match_type=match_type,
        )

    def rank(
        self,
        query: str,
        candidates: list[SearchCandidate],
        limit: int = 10,
    ) -> list[SearchResult]:
        """
        Rank candidates for a query.

        Args:
            query: Free-text query
            candidates: Documents to consider
            limit: Maximum results

        Returns:
            list[SearchResult]: Best matches first; empty when nothing matches
        """
        query_keywords = extract_query_keywords(query)
        if not query_keywords:
            return []

        results = [
            result
            for result in (self.score(candidate, query_keywords) for candidate in candidates)
            if result is not None
        ]
        results.sort(key=lambda result: result.relevance_score, reverse=True)
        logger.debug(
            f"Ranked {len(results)} of {len(candidates)} candidates",
            extra={"keywords": query_keywords},
        )
        return results[:limit]
