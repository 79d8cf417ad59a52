# src/llm_stack/json_utils.py

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# Flat object only: the first "{" up to the first "}".
_FLAT_OBJECT = re.compile(r"\{[^}]+\}")


def extract_first_json_object(text: str) -> Optional[str]:
    """
    Return the first brace-delimited span in `text`, or None.

    The match stops at the first closing brace, so nested objects are
    cut short and will fail to parse. Decision replies are flat objects
    like {"action": "mine", "block": "oak_log"}.
    """
    if not text:
        return None
    match = _FLAT_OBJECT.search(text)
    return match.group(0) if match else None


def load_json_or_none(
    raw: str,
    *,
    context: str = "unknown",
) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """
    Best-effort JSON object loader.

    Returns (data, error_message). If parsing fails or the value is not an
    object, data is None and error_message describes the failure.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"{context}: JSONDecodeError at pos {e.pos}: {e.msg}"
        logger.debug("load_json_or_none failed: %s; raw=%r", msg, raw)
        return None, msg

    if not isinstance(data, dict):
        msg = f"{context}: expected JSON object, got {type(data).__name__}"
        logger.debug("load_json_or_none failed: %s; raw=%r", msg, raw)
        return None, msg
    return data, None
