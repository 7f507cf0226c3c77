"""
Pipeline - Keyword Scorer

Lexical relevance between a raw query and a segment's text.
"""

import re
from typing import List


TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)

# Credit for a query term found inside a longer segment word
PARTIAL_CREDIT = 0.5
MIN_PARTIAL_LENGTH = 2


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens, split on whitespace and punctuation."""
    return TOKEN_PATTERN.findall(text.casefold())


def _unique(tokens: List[str]) -> List[str]:
    return list(dict.fromkeys(tokens))


class KeywordScorer:
    """
    Case-insensitive term overlap.

    Each distinct query term earns 1.0 for an exact token match and
    PARTIAL_CREDIT when it only appears inside a longer segment token.
    The score is the mean credit over distinct query terms, so identical
    text scores 1.0, disjoint vocabularies score 0.0, and adding a matched
    term never lowers the score.
    """

    def score(self, query_text: str, segment_text: str) -> float:
        query_terms = _unique(tokenize(query_text))
        if not query_terms:
            # Punctuation-only query: only an identical segment matches
            same = query_text.strip().casefold() == segment_text.strip().casefold()
            return 1.0 if same and query_text.strip() else 0.0

        segment_tokens = tokenize(segment_text)
        if not segment_tokens:
            return 0.0
        token_set = set(segment_tokens)

        credit = 0.0
        for term in query_terms:
            if term in token_set:
                credit += 1.0
            elif len(term) >= MIN_PARTIAL_LENGTH and any(term in token for token in token_set):
                credit += PARTIAL_CREDIT

        return min(1.0, credit / len(query_terms))
