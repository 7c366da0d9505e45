"""Project-wide constant definitions.

External JSON keys emitted by the evaluation prompts live here so the rest of
the code can refer to them by name.
"""

__all__: list[str] = [
    "ACCURACY_LEVEL_KEY",
    "ABILITY_TO_EXPLAIN_KEY",
    "FEEDBACK_KEY",
    "STRUCTURED_FEEDBACK_KEY",
    "STRENGTHS_KEY",
    "IMPROVEMENTS_KEY",
    "NEXT_STEPS_KEY",
    "LEGACY_TEXT_FEEDBACK_FIELDS",
    "LEGACY_TEXT_SECTIONS",
    "LEGACY_TEXT_SCORE_FIELDS",
    "MIN_LEGACY_SCORE",
    "MAX_LEGACY_SCORE",
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_GEMINI_MODEL",
    "DEFAULT_OPENAI_MODEL",
]

# New structured response schema
ACCURACY_LEVEL_KEY: str = "Accuracy Level"
ABILITY_TO_EXPLAIN_KEY: str = "Ability to explain"
FEEDBACK_KEY: str = "Feedback"
STRUCTURED_FEEDBACK_KEY: str = "Structured Feedback"

# The three prompted feedback questions
STRENGTHS_KEY: str = "What could you do well?"
IMPROVEMENTS_KEY: str = "What can you do better?"
NEXT_STEPS_KEY: str = "Next Suggested Deep Dive?"

# Legacy free-text responses (```json fenced blocks)
LEGACY_TEXT_SECTIONS: tuple[str, ...] = ("content_evaluation", "video_evaluation")
LEGACY_TEXT_FEEDBACK_FIELDS: tuple[str, ...] = (
    "accuracy",
    "completeness",
    "clarity",
    "depth",
    "engagement",
    "relevance",
    "coverage",
)
LEGACY_TEXT_SCORE_FIELDS: tuple[str, ...] = ("score", "overall_score", "accuracy_score", "total_score")

# Legacy criteria/overallScore responses use a 1-10 scale
MIN_LEGACY_SCORE: int = 1
MAX_LEGACY_SCORE: int = 10

DEFAULT_HISTORY_LIMIT: int = 50

DEFAULT_GEMINI_MODEL: str = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL: str = "gpt-4o-mini"
