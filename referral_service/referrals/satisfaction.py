"""Satisfaction semantics of referral feedback scores"""
from enum import Enum
from typing import Optional


class SatisfactionLevel(str, Enum):
    """Satisfaction levels based on feedback score"""
    VERY_DISSATISFIED = "VERY_DISSATISFIED"
    DISSATISFIED = "DISSATISFIED"
    NEUTRAL = "NEUTRAL"
    SATISFIED = "SATISFIED"
    VERY_SATISFIED = "VERY_SATISFIED"


# Score to satisfaction level mapping
SCORE_TO_SATISFACTION = {
    1: SatisfactionLevel.VERY_DISSATISFIED,
    2: SatisfactionLevel.DISSATISFIED,
    3: SatisfactionLevel.NEUTRAL,
    4: SatisfactionLevel.SATISFIED,
    5: SatisfactionLevel.VERY_SATISFIED,
}


def get_satisfaction_level(score: Optional[int]) -> Optional[SatisfactionLevel]:
    """
    Convert a feedback score to a satisfaction level.

    Args:
        score: Feedback score (1-5), or None if no feedback was given

    Returns:
        SatisfactionLevel enum, or None when there is no score
    """
    if score is None:
        return None
    return SCORE_TO_SATISFACTION.get(score, SatisfactionLevel.NEUTRAL)
