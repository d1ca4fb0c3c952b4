# copycheck/guardrails.py
"""Input validation for copy-check requests."""
import json
import math
from typing import Any, Dict, List, Optional

from .config import get_cfg
from .errors import ValidationError
from .schemas import ASSET_TYPES, PLATFORMS, Brand, Constraints, CopyCheckRequest, Tone

def parse_json_body(raw: bytes) -> Any:
    """Decodes a request body, rejecting anything that is not JSON."""
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError):
        raise ValidationError("Invalid JSON body")

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)

def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(x) for x in value if x is not None]

def _optional_count(value: Any) -> Optional[int]:
    """Hashtag cap: absent, non-numeric or negative means unlimited."""
    if not _is_number(value) or value < 0:
        return None
    return int(value)

def _weight(tone: Dict[str, Any], key: str, default: float) -> float:
    value = tone.get(key)
    return float(value) if _is_number(value) else default

def validate_input(body: Any) -> CopyCheckRequest:
    """Checks a decoded body and coerces it into a ``CopyCheckRequest``.

    The checks run in a fixed order and the first failure raises
    ``ValidationError``. Everything after ``constraints.maxChars`` is coerced
    with defaults instead of rejected.
    """
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")

    text = body.get("text")
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("text required")
    platform = body.get("platform")
    if platform not in PLATFORMS:
        raise ValidationError("invalid platform")
    asset_type = body.get("assetType")
    if asset_type not in ASSET_TYPES:
        raise ValidationError("invalid assetType")
    constraints = body.get("constraints")
    if not isinstance(constraints, dict) or not _is_number(constraints.get("maxChars")):
        raise ValidationError("constraints.maxChars required")
    max_chars = int(constraints["maxChars"])
    if max_chars <= 0:
        raise ValidationError("constraints.maxChars must be positive")

    guard = get_cfg()["guardrails"]
    brand = body.get("brand") if isinstance(body.get("brand"), dict) else {}
    tone = brand.get("tone") if isinstance(brand.get("tone"), dict) else {}
    default_tone = guard["tone"]

    return CopyCheckRequest(
        text=text,
        platform=platform,
        asset_type=asset_type,
        reading_level_target=str(body.get("readingLevelTarget") or guard["reading_level"]),
        constraints=Constraints(
            max_chars=max_chars,
            max_hashtags=_optional_count(constraints.get("maxHashtags")),
            require_cta=bool(constraints.get("requireCTA")),
        ),
        brand=Brand(
            banned_words=_string_list(brand.get("bannedWords")),
            required_phrases=_string_list(brand.get("requiredPhrases")),
            tone=Tone(
                confident=_weight(tone, "confident", default_tone["confident"]),
                compassionate=_weight(tone, "compassionate", default_tone["compassionate"]),
                evidence_led=_weight(tone, "evidenceLed", default_tone["evidenceLed"]),
            ),
        ),
    )
