"""Normalization of raw AI section output."""

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

GENERAL_INSIGHT_SECTIONS = frozenset({"company", "competitors", "techStack"})

_BULLET_LINE = re.compile(r"\n\s*[-•*]\s")
_NUMBERED_LINE = re.compile(r"\n\s*\d+[.)]\s")
_BULLET_PREFIX = re.compile(r"^\s*[-•*]\s+")
_NUMBER_PREFIX = re.compile(r"^\s*\d+[.)]\s+")


def is_string_list(text: str) -> bool:
    """Whether a string looks like a bulleted, numbered or multi-line list."""
    if not text:
        return False
    return (
        bool(_BULLET_LINE.search(text))
        or bool(_NUMBERED_LINE.search(text))
        or len(re.split(r"\n+", text)) > 2
    )


def string_to_list(text: str) -> list[str]:
    lines = [line for line in re.split(r"\n+", text or "") if line.strip()]
    return [_NUMBER_PREFIX.sub("", _BULLET_PREFIX.sub("", line)).strip() for line in lines]


def ensure_array(value: Any) -> list[str]:
    """Coerce a string or list into a list of non-empty strings."""
    if not value:
        return []
    if isinstance(value, list):
        return [item for item in value if item and isinstance(item, str)]
    if isinstance(value, str):
        if is_string_list(value):
            return string_to_list(value)
        return [item.strip() for item in re.split(r"\n+|;\s*", value) if item.strip()]
    return []


def enhance_section(section: str, content: dict[str, Any]) -> dict[str, Any]:
    """Normalize the structure of one section's content."""
    if content.get("insufficient_data"):
        return content

    enhanced = dict(content)
    if section == "techStack":
        for key in ("painPoints", "opportunities"):
            if content.get(key) and not isinstance(content[key], list):
                enhanced[key] = ensure_array(content[key])
    elif section == "nextSteps":
        actions = content.get("recommendedActions")
        if isinstance(actions, list) and actions and isinstance(actions[0], str):
            enhanced["recommendedActions"] = [
                {"description": action, "priority": "Medium"} for action in actions
            ]
    elif section == "competitors":
        for key in ("competitors", "mainCompetitors"):
            if content.get(key) and not isinstance(content[key], list):
                enhanced[key] = ensure_array(content[key])
    return enhanced


def process_ai_response(section: str, response: Any) -> dict[str, Any]:
    """
    Turn a parsed AI response into stored section content.

    Args:
        section: Section key
        response: Parsed JSON object returned by the model

    Returns:
        Normalized content; sections built from general industry knowledge
        are flagged with ``isGeneralInsight``.
    """
    if not response:
        return {"insufficient_data": True, "message": "No response received"}
    if not isinstance(response, dict):
        logger.warning(f"[SECTIONS] {section}: expected a JSON object, got {type(response).__name__}")
        return {"insufficient_data": True, "message": "Error processing AI content"}

    enhanced = enhance_section(section, response)
    if section in GENERAL_INSIGHT_SECTIONS:
        enhanced["isGeneralInsight"] = True
    return enhanced
