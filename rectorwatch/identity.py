"""
Name identity decisions.

Two scraped names denote the same rector if they share a canonical key
(case and spacing differences) or are within a small edit distance
(scraping typos such as "Decout-Paolini" / "Decout-Paolino").

The relation is a similarity, not an equivalence: A ~ B and B ~ C does not
imply A ~ C. Callers decide which neighbour to compare against.
"""

from rapidfuzz.distance import Levenshtein

from .normalize import canonical_name

EDIT_DISTANCE_THRESHOLD = 2

# |len(a) - len(b)| is a lower bound of the edit distance, so any gap
# above this limit already exceeds the threshold.
LENGTH_GAP_LIMIT = 3


def edit_distance(a: str, b: str) -> int:
    """
    Case-insensitive Levenshtein distance with unit costs for
    insertion, deletion and substitution.
    """
    return Levenshtein.distance((a or "").lower(), (b or "").lower())


def same_person(a: str, b: str) -> bool:
    """Return True if both names are judged to be the same person."""
    if canonical_name(a) == canonical_name(b):
        return True
    a = a or ""
    b = b or ""
    if abs(len(a) - len(b)) > LENGTH_GAP_LIMIT:
        return False
    return edit_distance(a, b) <= EDIT_DISTANCE_THRESHOLD
