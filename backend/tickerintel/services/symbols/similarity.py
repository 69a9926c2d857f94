"""Edit-distance similarity between two strings."""

from rapidfuzz.distance import Levenshtein


def similarity(a: str, b: str) -> float:
    """
    Similarity ratio in [0, 1].

    Computed as (len(longer) - levenshtein(a, b)) / len(longer); two empty
    strings are identical (1.0).
    """
    if not a and not b:
        return 1.0
    return float(Levenshtein.normalized_similarity(a, b))
