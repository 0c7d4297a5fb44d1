"""Prompt template loading and structured-output schemas."""

from functools import lru_cache
from pathlib import Path

_PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"

_LANG_INSTRUCTIONS = {
    "zh": "IMPORTANT: Provide the output in Simplified Chinese.",
    "ja": "IMPORTANT: Provide the output in Japanese.",
    "es": "IMPORTANT: Provide the output in Spanish.",
    "fr": "IMPORTANT: Provide the output in French.",
    "de": "IMPORTANT: Provide the output in German.",
}

TEXT_MODE_INSTRUCTIONS = {
    "continue": "Continue the story for about 500 words, keeping the tone, style and character voices.",
    "rewrite": "Rewrite the text: keep the meaning, but make it more vivid and show rather than tell.",
    "polish": "Polish the text: fix grammar, vary sentence structure and sharpen descriptions without changing the plot.",
}

AUDIENCES = {
    "male": "male-oriented (hot-blooded, levelling up, systems, power struggles)",
    "female": "female-oriented (emotional, delicate, romance, strong heroines)",
}


@lru_cache(maxsize=32)
def load_prompt(name: str) -> str:
    """Load a prompt template from config/prompts/ (cached after first read)."""
    path = _PROMPTS_DIR / f"{name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")
    return path.read_text(encoding="utf-8")


def lang_instruction(lang: str) -> str:
    return _LANG_INSTRUCTIONS.get(lang, "Provide the output in English.")


def render_prompt(template: str, lang: str, /, **fields) -> str:
    return load_prompt(template).format(lang_instruction=lang_instruction(lang), **fields).strip()


def system_instruction(lang: str) -> str:
    return render_prompt("system", lang)


def optional_line(label: str, value) -> str:
    """``"\\n<label>: <value>\\n"`` when value is set, else empty."""
    return f"\n{label}: {value}\n" if value else ""


def outline_node_schema(depth: int = 3) -> dict:
    """JSON schema for an outline node with children nested ``depth`` levels."""
    node = {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "type": {"type": "string"},
            "description": {"type": "string"},
        },
        "required": ["name", "type", "description"],
    }
    if depth > 1:
        node["properties"]["children"] = {"type": "array", "items": outline_node_schema(depth - 1)}
    return node


STORY_IDEA_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "synopsis": {"type": "string"},
        "coolPoint": {"type": "string"},
        "burstPoint": {"type": "string"},
        "goldenFinger": {"type": "string"},
        "source": {"type": "string"},
    },
    "required": ["title", "synopsis", "coolPoint"],
}

# Structured output needs an object at the top level
DAILY_STORIES_SCHEMA = {
    "type": "object",
    "properties": {"ideas": {"type": "array", "items": STORY_IDEA_SCHEMA}},
    "required": ["ideas"],
}
