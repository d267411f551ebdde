import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Greedy: first "{" to last "}", models like to wrap JSON in prose
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_WORD_RE = re.compile(r"[a-z0-9']+")


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Pull the first JSON object out of a model reply.

    Returns:
        The decoded object, or None when there is no parsable JSON object
    """
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning(f"Model reply held malformed JSON: {str(e)}")
        return None
    return data if isinstance(data, dict) else None


def split_words(text: str) -> List[str]:
    """Lowercase word tokens; "never mind" is folded into "nevermind"."""
    normalized = re.sub(r"\bnever\s+mind\b", "nevermind", text.lower())
    return _WORD_RE.findall(normalized.replace("’", "'"))


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return False


def clean_optional_text(value: Any) -> Optional[str]:
    """Model "null"/"none"/"" become None; anything else is stripped text."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a"):
        return None
    return text
