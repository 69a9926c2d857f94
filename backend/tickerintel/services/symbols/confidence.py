"""
Confidence scoring for symbol matches.

Each match type has a fixed base score; fuzzy matches use the name similarity
directly. Reference hits found through a quote-suffix, unwrap or substring
lookup score below exact ones. Alias presence and external verification add a
bounded bonus. Scores are clamped to [0, 1].
"""

from dataclasses import dataclass

from ...models.pending_mapping import MatchType


@dataclass(frozen=True)
class ConfidenceWeights:
    """Base scores and bonuses per match type."""

    exact_authoritative: float = 1.0
    exact_reference: float = 0.85
    partial_reference: float = 0.6
    exact_symbol_unique: float = 1.0
    exact_symbol_ambiguous: float = 0.85
    alias_bonus: float = 0.05
    verification_bonus: float = 0.05
    max_bonus: float = 0.1


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def calculate_confidence(
    match_type: MatchType,
    name_similarity: float = 0.0,
    has_alias: bool = False,
    externally_verified: bool = False,
    *,
    ambiguous: bool = False,
    weights: ConfidenceWeights | None = None,
) -> float:
    """
    Combine match evidence into a single confidence value.

    Args:
        match_type: How the candidate was found
        name_similarity: Similarity of the input to the candidate name (fuzzy only)
        has_alias: Candidate lists the input among its aliases
        externally_verified: Another source independently confirms the candidate
        ambiguous: Several corpus rows share the exact symbol
        weights: Scoring weights (defaults to ConfidenceWeights())

    Returns:
        Confidence in [0, 1]. Exact authoritative matches are always 1.0 and
        "none" is always 0.0.
    """
    weights = weights or ConfidenceWeights()

    if match_type == MatchType.NONE:
        return 0.0
    if match_type == MatchType.EXACT_AUTHORITATIVE:
        return 1.0

    if match_type == MatchType.EXACT_REFERENCE:
        base = weights.exact_reference
    elif match_type == MatchType.PARTIAL_REFERENCE:
        base = weights.partial_reference
    elif match_type == MatchType.EXACT_SYMBOL:
        base = (
            weights.exact_symbol_ambiguous if ambiguous else weights.exact_symbol_unique
        )
    else:
        base = _clamp(name_similarity)

    bonus = 0.0
    if has_alias:
        bonus += weights.alias_bonus
    if externally_verified:
        bonus += weights.verification_bonus
    bonus = min(bonus, weights.max_bonus)

    return round(_clamp(base + bonus), 4)
