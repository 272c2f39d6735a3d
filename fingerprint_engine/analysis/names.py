"""
Business Name Matching

Text helpers shared by the response analyzer and the leaderboard builder:
- name normalization and variation generation
- list-item parsing for recommendation answers
- competitor-name validation
"""

import re
from typing import List, Optional, Tuple

from .lexicon import Lexicon

_NON_WORD = re.compile(r"[^a-z0-9&]+")
_LIST_ITEM = re.compile(
    r"^\s*(?:[*_]{1,2})?(?:#\s*)?(?:(\d{1,2})[.)]|[-*•](?=\s))\s*(.+?)\s*$"
)
_CLOSING_EMPHASIS = re.compile(r"^[*_]{1,2}\s+")
_BOLD = re.compile(r"\*\*([^*]+?)\*\*")
_DESCRIPTION_SPLIT = re.compile(r"\s+[-–—]\s+|:\s|\s\(|\s*[–—]\s*")


def normalize(text: str) -> str:
    """Lowercase, fold apostrophes and punctuation to single spaces."""
    text = text.lower().replace("’", "'").replace("'", " ")
    return " ".join(_NON_WORD.sub(" ", text).split())


def contains_phrase(normalized_text: str, normalized_phrase: str) -> bool:
    """Whole-word containment on normalized strings."""
    if not normalized_phrase:
        return False
    return f" {normalized_phrase} " in f" {normalized_text} "


def name_variations(name: str, lexicon: Optional[Lexicon] = None) -> List[str]:
    """
    Normalized spellings under which a business may be mentioned.

    The full normalized name always comes first. Variations strip legal
    suffixes and leading articles, swap ``&``/``and`` and centre/center.
    Single generic words are never returned as a variation.
    """
    lexicon = lexicon or Lexicon()
    base = normalize(name)
    if not base:
        return []

    variations = [base]
    tokens = base.split()

    stripped = list(tokens)
    while len(stripped) > 1 and stripped[-1] in lexicon.name_suffixes:
        stripped.pop()
    while len(stripped) > 1 and stripped[0] in lexicon.name_prefixes:
        stripped.pop(0)
    variations.append(" ".join(stripped))

    for source in (tokens, stripped):
        swapped = [lexicon.name_replacements.get(token, token) for token in source]
        variations.append(" ".join(swapped))

    result = []
    for variation in variations:
        words = variation.split()
        if not variation or variation in result:
            continue
        if len(variation) < 3:
            continue
        if len(words) == 1 and variation != base and variation in lexicon.generic_name_words:
            continue
        result.append(variation)
    return result


def acronym(name: str, lexicon: Optional[Lexicon] = None) -> Optional[str]:
    """Uppercase initials of a 3+ word name, ignoring articles and suffixes."""
    lexicon = lexicon or Lexicon()
    words = [
        w for w in normalize(name).split()
        if w not in lexicon.name_prefixes and w not in lexicon.name_suffixes and w != "&"
    ]
    if len(words) < 3:
        return None
    return "".join(w[0] for w in words).upper()


def is_same_business(candidate: str, name: str, lexicon: Optional[Lexicon] = None) -> bool:
    """True when two names share any normalized variation."""
    return bool(set(name_variations(candidate, lexicon)) & set(name_variations(name, lexicon)))


# =============================================================================
# LIST PARSING
# =============================================================================


def parse_list_items(text: str) -> List[Tuple[Optional[int], str]]:
    """
    Extract (number, item text) pairs from numbered or bulleted lines.

    Bullets carry no number. Markdown emphasis around the number is
    tolerated (``**1.** Name``).
    """
    items = []
    for line in text.splitlines():
        match = _LIST_ITEM.match(line)
        if not match:
            continue
        number = int(match.group(1)) if match.group(1) else None
        body = _CLOSING_EMPHASIS.sub("", match.group(2)).strip()
        if body:
            items.append((number, body))
    return items


def item_name(item: str) -> str:
    """The business-name part of a list item, without its description."""
    bold = _BOLD.search(item)
    if bold:
        return bold.group(1).strip(" :-")
    head = _DESCRIPTION_SPLIT.split(item, maxsplit=1)[0]
    return head.strip(" *_.,;:-")


def is_valid_competitor_name(candidate: str, lexicon: Optional[Lexicon] = None) -> bool:
    """Reject prose fragments, generic phrases and well-known non-competitors."""
    lexicon = lexicon or Lexicon()
    candidate = candidate.strip()

    if len(candidate) < 2 or len(candidate) > 60:
        return False
    if not (candidate[0].isupper() or candidate[0].isdigit()):
        return False
    if any(ch in candidate for ch in "?!"):
        return False

    lowered = candidate.lower()
    if any(lowered == p or lowered.startswith(p + " ") for p in lexicon.prose_prefixes):
        return False

    words = normalize(candidate).split()
    if not words or len(words) > 6:
        return False
    if len(words) == 1 and words[0] in lexicon.generic_name_words:
        return False

    normalized = " ".join(words)
    for false_positive in lexicon.false_positive_names:
        if normalized == false_positive or normalized.startswith(false_positive + " "):
            return False

    return True
