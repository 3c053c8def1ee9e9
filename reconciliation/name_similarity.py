"""Entity Name Similarity.

Heuristic comparison of a payer name against an invoice customer name.
This is a fixed rule set, not a statistical model:
1. Strip one trailing corporate suffix (see CORPORATE_SUFFIXES)
2. Lowercase
3. Exact match -> 1.0, containment -> 0.9
4. Otherwise, share of significant tokens that match

Examples:
    "Acme Corp"          vs "Acme Corp"             -> 1.0
    "Acme Holdings"      vs "Acme Corp Holdings"    -> 0.67
    "Beta International Inc" vs "Beta International" -> 1.0
    "Delta Company"      vs "Delta Co"              -> 0.9
"""

import re
from typing import List


# Trailing suffixes removed before comparison. Matched case-insensitively,
# with an optional trailing period, only when preceded by whitespace.
CORPORATE_SUFFIXES = ("inc", "corp", "llc", "ltd", "co")

# Tokens shorter than this never count towards similarity
MIN_TOKEN_LENGTH = 3

# Tokens longer than this may match as a substring of the other token
SUBSTRING_MATCH_LENGTH = 6

CONTAINMENT_SCORE = 0.9

# Returned when a name has no significant tokens to compare
NEUTRAL_SCORE = 0.5

_SUFFIX_RE = re.compile(
    r"\s+(?:" + "|".join(CORPORATE_SUFFIXES) + r")\.?$",
    re.IGNORECASE,
)
_TOKEN_SPLIT_RE = re.compile(r"\W+")


def clean_name(name: str) -> str:
    """Remove one trailing corporate suffix and lowercase.

    >>> clean_name("Gamma LLC")
    'gamma'
    >>> clean_name("Acme Corp.")
    'acme'
    """
    if not name:
        return ""
    return _SUFFIX_RE.sub("", name, count=1).lower()


def significant_tokens(cleaned: str) -> List[str]:
    """Split on non-word characters and keep tokens of 3+ characters."""
    return [t for t in _TOKEN_SPLIT_RE.split(cleaned) if len(t) >= MIN_TOKEN_LENGTH]


def _tokens_match(t1: str, t2: str) -> bool:
    if t1 == t2:
        return True
    if len(t1) >= SUBSTRING_MATCH_LENGTH and t1 in t2:
        return True
    return len(t2) >= SUBSTRING_MATCH_LENGTH and t2 in t1


def name_similarity(name1: str, name2: str) -> float:
    """Score how likely two names refer to the same entity.

    Args:
        name1: Payer name (or any free-text entity name)
        name2: Customer name to compare against

    Returns:
        Similarity from 0.0 to 1.0
    """
    clean1 = clean_name(name1)
    clean2 = clean_name(name2)

    if clean1 == clean2:
        return 1.0

    # An empty name is contained in every name
    if clean1 in clean2 or clean2 in clean1:
        return CONTAINMENT_SCORE

    tokens1 = significant_tokens(clean1)
    tokens2 = significant_tokens(clean2)

    if not tokens1 or not tokens2:
        return NEUTRAL_SCORE

    # Each token of the first name counts at most once
    matched = sum(
        1 for t1 in tokens1
        if any(_tokens_match(t1, t2) for t2 in tokens2)
    )

    return matched / max(len(tokens1), len(tokens2))
