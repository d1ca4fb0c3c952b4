# copycheck/models.py
"""Handles the language-model call and the coercion of its output."""
import json
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from openai import AsyncOpenAI, OpenAIError

from .config import get_cfg
from .prompts import Prompt
from .schemas import Score, Suggestion, Variant

logger = logging.getLogger(__name__)

MAX_VARIANTS = 3

@dataclass
class ModelOutput:
    """A model suggestion after defensive coercion. ``score`` is None when absent."""
    suggestion: Suggestion
    score: Optional[Score] = None
    flags: List[str] = field(default_factory=list)
    variants: List[Variant] = field(default_factory=list)
    explanations: List[str] = field(default_factory=list)

@dataclass
class Success:
    output: ModelOutput

@dataclass
class RetryableParseFailure:
    reason: str

@dataclass
class Unavailable:
    reason: str

ModelOutcome = Union[Success, RetryableParseFailure, Unavailable]

_client: Optional[AsyncOpenAI] = None
_client_settings: Optional[tuple] = None

def get_client() -> Optional[AsyncOpenAI]:
    """Returns the shared OpenAI client, or None when no credentials are configured.

    The client is built on first use and rebuilt when the credentials or
    endpoint settings change.
    """
    global _client, _client_settings
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        return None
    settings = (
        api_key,
        os.environ.get("OPENAI_ORG_ID"),
        os.environ.get("OPENAI_PROJECT_ID"),
        os.environ.get("OPENAI_API_BASE"),
        float(get_cfg()["openai"]["timeout_seconds"]),
    )
    if _client is None or settings != _client_settings:
        _client = AsyncOpenAI(
            api_key=settings[0],
            organization=settings[1],
            project=settings[2],
            base_url=settings[3],
            timeout=settings[4],
            max_retries=0,
        )
        _client_settings = settings
    return _client

async def close_client() -> None:
    """Closes the shared client's connection pool."""
    global _client, _client_settings
    if _client is not None:
        await _client.close()
    _client = None
    _client_settings = None

def _unit(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return min(1.0, max(0.0, number))

def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(x) for x in value if x is not None]

def coerce_output(parsed: Any) -> Optional[ModelOutput]:
    """Coerces decoded model JSON into a ``ModelOutput``.

    Returns None when the shape is unusable, including an empty suggestion.
    """
    if not isinstance(parsed, dict):
        return None
    suggestion = parsed.get("suggestion")
    text = suggestion.get("text") if isinstance(suggestion, dict) else None
    text = "" if text is None else str(text)
    if not text.strip():
        return None

    score = None
    raw_score = parsed.get("score")
    if isinstance(raw_score, dict):
        score = Score(
            clarity=_unit(raw_score.get("clarity")),
            brevity=_unit(raw_score.get("brevity")),
            hook=_unit(raw_score.get("hook")),
            fit=_unit(raw_score.get("fit")),
            reading_level=str(raw_score.get("readingLevel") or "Unknown"),
        )

    variants = [
        Variant(label=str(v.get("label") or ""), text=str(v.get("text") or ""))
        for v in (parsed.get("variants") if isinstance(parsed.get("variants"), list) else [])
        if isinstance(v, dict)
    ][:MAX_VARIANTS]

    return ModelOutput(
        suggestion=Suggestion(text=text),
        score=score,
        flags=_strings(parsed.get("flags")),
        variants=variants,
        explanations=_strings(parsed.get("explanations")),
    )

async def invoke(client: AsyncOpenAI, prompt: Prompt, temperature: float) -> ModelOutcome:
    """Makes one chat completion call. Transport failures are not retried here."""
    cfg = get_cfg()["openai"]
    model_name = os.environ.get("OPENAI_MODEL") or cfg["model"]
    kwargs = {}
    if cfg.get("json_mode"):
        kwargs["response_format"] = {"type": "json_object"}

    try:
        resp = await client.chat.completions.create(
            model=model_name,
            temperature=temperature,
            messages=[{"role": "system", "content": prompt.system}, {"role": "user", "content": prompt.user}],
            **kwargs,
        )
    except OpenAIError as e:
        logger.warning("Model call failed: %s", e)
        return Unavailable(reason=type(e).__name__)

    raw = resp.choices[0].message.content if resp.choices else None
    try:
        data = json.loads(raw or "")
    except ValueError:
        return RetryableParseFailure(reason="model returned non-JSON content")
    output = coerce_output(data)
    if output is None:
        return RetryableParseFailure(reason="model output did not match the schema")
    return Success(output=output)
