# copycheck/enforcer.py
"""Post-validation: every text that leaves the service goes through here.

Model output is never trusted. The suggestion and each variant are rewritten
independently against the caller's constraints.
"""
from typing import List, Optional

from .models import MAX_VARIANTS, ModelOutput
from .rewriter import dedupe, hard_trim, rewrite
from .schemas import CopyCheckRequest, CopyCheckResponse, Score, Suggestion, Variant

FALLBACK_FLAG = "Rule-based fallback"
DEFAULT_EXPLANATIONS = [
    "Removed banned words and preserved URLs",
    "Injected required phrases and trimmed to character limit",
    "Heuristic reading-level balance applied",
]

def default_score(request: CopyCheckRequest) -> Score:
    return Score(clarity=0.7, brevity=0.7, hook=0.6, fit=0.8, reading_level=request.reading_level_target)

def enforce(candidate: Optional[ModelOutput], request: CopyCheckRequest) -> CopyCheckResponse:
    """Rewrites the candidate (or the input text) until it meets every constraint."""
    flags: List[str] = list(candidate.flags) if candidate else []

    source = candidate.suggestion.text if candidate else request.text
    fixed = rewrite(source, request.constraints, request.brand)
    flags += fixed.flags
    if candidate and fixed.text != source:
        flags.append("Adjusted to meet constraints")

    variants: List[Variant] = []
    for variant in (candidate.variants if candidate else [])[:MAX_VARIANTS]:
        variant_source = variant.text or request.text
        result = rewrite(variant_source, request.constraints, request.brand)
        if result.text != variant_source:
            flags.append(f"Adjusted variant ({variant.label}) to meet constraints")
        variants.append(Variant(label=variant.label, text=result.text))

    return CopyCheckResponse(
        score=candidate.score if candidate and candidate.score else default_score(request),
        flags=dedupe(flags),
        suggestion=Suggestion(text=fixed.text),
        variants=variants,
        explanations=(candidate.explanations if candidate and candidate.explanations else list(DEFAULT_EXPLANATIONS)),
    )

def shorter_target(max_chars: int) -> int:
    """About 60% of the limit, at least 40 chars, never above the limit."""
    return min(max_chars, max(40, int(max_chars * 0.6)))

def make_fallback(request: CopyCheckRequest) -> CopyCheckResponse:
    """The deterministic answer used when the model path is unavailable."""
    response = enforce(None, request)
    response.flags = dedupe([FALLBACK_FLAG] + response.flags)

    text = response.suggestion.text
    shorter, _ = hard_trim(
        text,
        shorter_target(request.constraints.max_chars),
        request.brand.required_phrases,
        request.brand.banned_words,
    )
    if shorter and shorter != text:
        enforced = rewrite(shorter, request.constraints, request.brand)
        response.variants = [Variant(label="Shorter", text=enforced.text)]
    return response
