from __future__ import annotations

from typing import Optional

from quizrush.services.normalizer import MULTIPLE_CHOICE, TRUE_FALSE

MAX_SOURCE_CHARS = 6000
DAILY_TRIVIA_COUNT = 5
WORDSEARCH_TERM_COUNT = 15
CROSSWORD_SIZE = 10
DEFAULT_CROSSWORD_THEME = "astronomy or space"

TRUE_FALSE_SHAPE = '[{"question": "...", "answer": "True"}]'
MULTIPLE_CHOICE_SHAPE = (
    '[{"question": "...", "options": ["A. ...", "B. ...", "C. ...", "D. ..."], "answer": "A. ..."}]'
)


def _source(text: str) -> str:
    return (text or "").strip()[:MAX_SOURCE_CHARS]


def _qualifiers(difficulty: str, cognitive_level: Optional[str], topic_area: Optional[str]) -> str:
    parts = [f'with difficulty "{difficulty}"']
    if cognitive_level:
        parts.append(f'at the "{cognitive_level}" level of Bloom\'s taxonomy')
    if topic_area:
        parts.append(f'focused on the topic area "{topic_area}"')
    return ", ".join(parts)


def build_true_false_prompt(
    topic: str,
    count: int,
    difficulty: str,
    cognitive_level: Optional[str] = None,
    topic_area: Optional[str] = None,
) -> str:
    return (
        f'Generate {count} true/false questions based on "{_source(topic)}" '
        f"{_qualifiers(difficulty, cognitive_level, topic_area)}. "
        "Each answer must be exactly \"True\" or \"False\". "
        f"Return pure minimal JSON only, no explanations: {TRUE_FALSE_SHAPE}"
    )


def build_multiple_choice_prompt(
    topic: str,
    count: int,
    difficulty: str,
    cognitive_level: Optional[str] = None,
    topic_area: Optional[str] = None,
) -> str:
    return (
        f'Generate {count} multiple-choice questions based on "{_source(topic)}" '
        f"{_qualifiers(difficulty, cognitive_level, topic_area)}. "
        "Each question must have exactly 4 distinct options and the answer must repeat one of them. "
        f"Return pure minimal JSON only, no explanations: {MULTIPLE_CHOICE_SHAPE}"
    )


def build_quiz_prompt(
    question_type: str,
    topic: str,
    count: int,
    difficulty: str,
    cognitive_level: Optional[str] = None,
    topic_area: Optional[str] = None,
) -> str:
    if question_type == TRUE_FALSE:
        return build_true_false_prompt(topic, count, difficulty, cognitive_level, topic_area)
    if question_type == MULTIPLE_CHOICE:
        return build_multiple_choice_prompt(topic, count, difficulty, cognitive_level, topic_area)
    raise ValueError(f"Unknown question type: {question_type}")


def build_crossword_prompt(theme: str = DEFAULT_CROSSWORD_THEME) -> str:
    size = CROSSWORD_SIZE
    return f"""
Create a {size}x{size} crossword puzzle on the theme of {theme}.

Instructions:
- Return ONLY a JSON object with two fields: "grid" and "clues"
- "grid" must be a 2D array of {size}x{size}.
  - Use "" (empty string) for white squares where input is allowed.
  - Use "B" for black squares.
- "clues" must be an array of {size} clue objects. Each clue should include:
  {{"number": 1, "hint": "The red planet", "answer": "MARS", "direction": "down" or "across", "start": 12, "color": "text-red-600"}}

Rules:
- Clues must not overlap unless intentionally intersecting by letter.
- Avoid invalid overlaps or exceeding grid bounds.
- All answers must be between 3-8 uppercase letters.

Return ONLY JSON, no explanation, no formatting.
""".strip()


def build_wordsearch_prompt(title: str, text: str) -> str:
    return f"""
You are an AI assistant generating a Word Search quiz for students.

From the following educational content, extract {WORDSEARCH_TERM_COUNT} important terms and generate an identification-style clue for each.

Respond ONLY in JSON with this format:

{{
  "title": "{title}",
  "questions": [
    {{ "question": "Who is the ___?", "answer": "Keyword" }}
  ]
}}

Text:
\"\"\"{_source(text)}\"\"\"
""".strip()


def build_word_list_prompt(title: str, description: str, num_words: int) -> str:
    return f"""
Generate exactly {num_words} distinct, single-word terms suitable for a classroom word-search puzzle.

- Theme title: "{title}"
- Description / context: "{_source(description)}"
- Words must be 3-15 letters, no spaces, no punctuation.
- Output ONLY valid JSON: {{ "words": ["TERM1", "TERM2", ...] }}
""".strip()
