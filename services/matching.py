"""
Ingredient Matching Service

Functions for turning free-text ingredient lines into lookup keys and
for fuzzy-matching search text against meals.
"""


def normalize_ingredient(text):
    """
    Canonical lookup key for an ingredient line: trimmed and lowercased.

    "2 Eggs" and " 2 eggs " share a key. There is no quantity or unit
    parsing. Returns '' for blank input, which callers treat as no key.
    """
    if not text:
        return ''
    return text.strip().lower()


def split_ingredients(text):
    """Split a multi-line ingredients field into trimmed, non-empty lines."""
    if not text:
        return []
    lines = text.replace('\r', '').split('\n')
    return [line.strip() for line in lines if line.strip()]


def fuzzy_match(text, search):
    """
    Score how well ``search`` matches ``text``.

    A plain substring match scores 1000. Otherwise every search character
    must appear in order; runs of consecutive matches score higher.
    Returns 0 when the search cannot be matched.
    """
    text = (text or '').lower()
    search = (search or '').lower()

    if search in text:
        return 1000

    search_idx = 0
    consecutive = 0
    score = 0
    for char in text:
        if search_idx >= len(search):
            break
        if char == search[search_idx]:
            search_idx += 1
            consecutive += 1
            score += consecutive * 10
        else:
            consecutive = 0

    if search_idx == len(search):
        return score
    return 0
