# copycheck/pipeline.py
"""Sequences a copy check: rate limit, validate, model attempt(s), enforce.

Only rate limiting and validation can reject a request. Every other failure
degrades to the rule-based rewrite and still yields a compliant response.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from . import models
from .config import get_cfg
from .enforcer import enforce, make_fallback
from .errors import RateLimitError
from .guardrails import parse_json_body, validate_input
from .prompts import build_prompt
from .ratelimit import TokenBucketLimiter, get_limiter
from .schemas import CopyCheckRequest, CopyCheckResponse

logger = logging.getLogger(__name__)

class Stage(str, Enum):
    NO_CREDENTIALS = "no_credentials"
    MODEL_ATTEMPT_1 = "model_attempt_1"
    MODEL_ATTEMPT_2 = "model_attempt_2"
    FALLBACK = "fallback"
    ENFORCED = "enforced"
    RESPONDED = "responded"

@dataclass
class PipelineResult:
    status_code: int
    request: CopyCheckRequest
    response: CopyCheckResponse
    degraded: bool
    trail: List[Stage] = field(default_factory=list)

async def attempt_model(request: CopyCheckRequest, trail: List[Stage]) -> Optional[models.ModelOutput]:
    """Runs the model path. Returns None when the caller must fall back."""
    client = models.get_client()
    if client is None:
        trail.append(Stage.NO_CREDENTIALS)
        logger.info("No model credentials configured; using rule-based rewrite")
        return None

    cfg = get_cfg()["openai"]
    prompt = build_prompt(request)
    trail.append(Stage.MODEL_ATTEMPT_1)
    outcome = await models.invoke(client, prompt, float(cfg["temperature"]))
    if isinstance(outcome, models.RetryableParseFailure):
        logger.info("Retrying with strict JSON instruction: %s", outcome.reason)
        trail.append(Stage.MODEL_ATTEMPT_2)
        outcome = await models.invoke(client, prompt.strict(), float(cfg["retry_temperature"]))

    if isinstance(outcome, models.Success):
        return outcome.output
    logger.warning("Model path unusable (%s); falling back", outcome.reason)
    return None

async def run_copy_check(raw: bytes, identity: str, limiter: Optional[TokenBucketLimiter] = None) -> PipelineResult:
    """Runs one copy check for ``identity``.

    Raises ``RateLimitError`` or ``ValidationError`` for terminal rejections.
    """
    limiter = limiter or get_limiter()
    if not limiter.allow(identity):
        logger.info("Rate limit exceeded for %s", identity)
        raise RateLimitError()

    request = validate_input(parse_json_body(raw))

    trail: List[Stage] = []
    candidate = await attempt_model(request, trail)
    if candidate is None:
        trail.append(Stage.FALLBACK)
        response = make_fallback(request)
        status_code = int(get_cfg()["guardrails"]["fallback_status"])
    else:
        response = enforce(candidate, request)
        status_code = 200
    trail += [Stage.ENFORCED, Stage.RESPONDED]
    return PipelineResult(
        status_code=status_code,
        request=request,
        response=response,
        degraded=candidate is None,
        trail=trail,
    )
