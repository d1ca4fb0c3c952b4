# copycheck/prompts.py
"""Model-facing instructions for copy checks."""
import json
from dataclasses import dataclass

from .schemas import CopyCheckRequest

STRICT_JSON_INSTRUCTION = "Return ONLY strict JSON. No prose, no markdown, strict JSON only."

OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "score": {
            "type": "object",
            "properties": {
                "clarity": {"type": "number"},
                "brevity": {"type": "number"},
                "hook": {"type": "number"},
                "fit": {"type": "number"},
                "readingLevel": {"type": "string"},
            },
            "required": ["clarity", "brevity", "hook", "fit", "readingLevel"],
        },
        "flags": {"type": "array", "items": {"type": "string"}},
        "suggestion": {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        },
        "variants": {
            "type": "array",
            "maxItems": 3,
            "items": {
                "type": "object",
                "properties": {"label": {"type": "string"}, "text": {"type": "string"}},
                "required": ["label", "text"],
            },
        },
        "explanations": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["score", "flags", "suggestion", "variants", "explanations"],
    "additionalProperties": False,
}

@dataclass(frozen=True)
class Prompt:
    system: str
    user: str

    def strict(self) -> "Prompt":
        """The same prompt with a stricter output instruction, for the parse-failure retry."""
        return Prompt(system=self.system, user=f"{self.user}\n\n{STRICT_JSON_INSTRUCTION}")

def build_system_prompt(request: CopyCheckRequest) -> str:
    c = request.constraints
    lines = [
        "You are a senior copy editor for a social impact organization. "
        "Optimize for clarity, brevity, action, and platform fit.",
        "HARD CONSTRAINTS (non-negotiable):",
        f"- The suggestion and every variant must be at most {c.max_chars} characters.",
        "- Do not change, shorten or remove any URL.",
        "- Include every REQUIRED PHRASE exactly as written.",
        "- Do not use any BANNED WORD.",
    ]
    if c.max_hashtags is not None:
        lines.append(f"- Use at most {c.max_hashtags} hashtags.")
    if c.require_cta:
        lines.append("- End with a clear call to action.")
    lines += [
        f"Write for {request.platform} ({request.asset_type}) at reading level {request.reading_level_target}.",
        "Preserve meaning and factual content.",
        "Return ONLY strict JSON with keys: score, flags, suggestion, variants, explanations. "
        "No extra text or markdown.",
        "If the constraints are impossible, produce the closest valid text and list violations in flags.",
    ]
    return "\n".join(lines)

def build_user_prompt(request: CopyCheckRequest) -> str:
    return (
        "INPUT JSON:\n"
        + json.dumps(request.model_dump(by_alias=True), ensure_ascii=False)
        + "\nOUTPUT SCHEMA (JSON):\n"
        + json.dumps(OUTPUT_SCHEMA)
    )

def build_prompt(request: CopyCheckRequest) -> Prompt:
    return Prompt(system=build_system_prompt(request), user=build_user_prompt(request))
