"""LLM output parsing utilities.

Structured-output mode normally returns bare JSON, but some models still wrap
it in markdown fences or prepend a sentence.
"""

import re

_THINK_PAIR_RE = re.compile(r"<think>.*?</think>", re.DOTALL)


def extract_json_object(text: str) -> str:
    """Extract a JSON object from LLM output, stripping think tags and markdown fences."""
    text = _THINK_PAIR_RE.sub("", text)
    text = text.replace("```json", "").replace("```", "").strip()
    idx = text.find("{")
    if idx > 0:
        text = text[idx:]
    last = text.rfind("}")
    if last >= 0:
        text = text[: last + 1]
    return text.strip()
