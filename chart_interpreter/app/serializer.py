"""
Chart serialization: render the caller's chart as readable JSON for the prompt.
"""

import json
from typing import Any

from .errors import SerializationError

PROMPT_SEPARATOR = "\n\nChart Data:\n"


def serialize_chart(chart: Any) -> str:
    """
    Pretty-print any JSON-compatible value with 2-space indentation.
    Object keys are sorted; non-ASCII text is left unescaped.
    """
    try:
        return json.dumps(chart, indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to marshal chart data: {e}") from e


def compose_prompt(template: str, chart: Any) -> str:
    return f"{template}{PROMPT_SEPARATOR}{serialize_chart(chart)}"
