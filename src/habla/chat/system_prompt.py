"""Prompt builders - tutor persona and correction-analysis instructions."""

from __future__ import annotations


def build_persona_prompt(language: str = "Spanish", level: str = "beginner") -> str:
    """Build the system prompt that sets up the conversation partner.

    Args:
        language: Language the learner is practising.
        level: Learner level, used to pitch vocabulary and sentence length.

    Returns:
        System prompt string.
    """
    parts = [
        f"You are a friendly {language} conversation partner for a {level} learner.",
        f"Always answer in {language}, even if the learner writes in another language.",
        "Keep replies short (two to four sentences) and end with a question that keeps the conversation going.",
        f"Match your vocabulary and grammar to a {level} level.",
        "Do not correct the learner's mistakes in your reply; corrections are shown separately.",
    ]
    return "\n".join(parts)


def build_correction_prompt(language: str = "Spanish") -> str:
    """Instructions for the structured correction request."""
    parts = [
        f"You review single messages written by a learner of {language}.",
        "Report grammar, spelling and agreement mistakes with type \"error\".",
        "Report unnatural phrasing or missing accents/punctuation with type \"style\".",
        "For each issue give the original fragment, the corrected fragment and a one-sentence explanation in English.",
        "If the message has no issues, set hasIssues to false and return an empty corrections list.",
        "Only analyze the learner message. Do not reply to it.",
    ]
    return "\n".join(parts)
