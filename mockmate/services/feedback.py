from __future__ import annotations

# Lower bound of each bracket, highest first.
SCORE_BRACKETS: tuple[tuple[int, tuple[str, ...]], ...] = (
    (
        80,
        (
            "Strong answer: the situation, your actions and the result come through clearly.",
            "Keep quantifying impact the way you did here; numbers make the story memorable.",
            "Tighten the opening so the interviewer hears the headline in the first sentence.",
        ),
    ),
    (
        60,
        (
            "Solid structure, but the result is vague. Close with a measurable outcome.",
            "Spend less time on background and more on the decisions you personally made.",
            "Tie the example back to what this role and company care about.",
        ),
    ),
    (
        40,
        (
            "Use the STAR format (Situation, Task, Action, Result) to organise the story.",
            "Name one concrete example instead of describing what you usually do.",
            "Say explicitly what you did versus what the team did.",
            "Finish with the result and what you learned from it.",
        ),
    ),
    (
        0,
        (
            "The answer does not yet address the question. Re-read it and pick a specific example.",
            "Outline the story with STAR before answering: Situation, Task, Action, Result.",
            "Aim for 1-2 minutes of speaking with a clear beginning, middle and end.",
            "Connect your experience on the résumé to the skills the question is probing.",
        ),
    ),
)


def feedback_for_score(score: int) -> list[str]:
    for floor, items in SCORE_BRACKETS:
        if score >= floor:
            return list(items)
    return list(SCORE_BRACKETS[-1][1])
