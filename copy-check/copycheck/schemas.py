# copycheck/schemas.py
"""Data schemas (Pydantic models) for the API."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PLATFORMS = (
    "Instagram",
    "Facebook",
    "LinkedIn",
    "X/Twitter",
    "TikTok",
    "YouTube",
    "Threads",
    "Pinterest",
)
ASSET_TYPES = ("Video", "Design", "Carousel")

Platform = Literal["Instagram", "Facebook", "LinkedIn", "X/Twitter", "TikTok", "YouTube", "Threads", "Pinterest"]
AssetType = Literal["Video", "Design", "Carousel"]

class CamelModel(BaseModel):
    """Serializes to the camelCase keys used on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class Tone(CamelModel):
    confident: float = 0.8
    compassionate: float = 0.7
    evidence_led: float = 1.0

class Constraints(CamelModel):
    """Hard constraints. ``max_hashtags=None`` means unlimited."""
    max_chars: int = Field(gt=0)
    max_hashtags: Optional[int] = None
    require_cta: bool = Field(default=False, alias="requireCTA")

class Brand(CamelModel):
    banned_words: List[str] = []
    required_phrases: List[str] = []
    tone: Tone = Field(default_factory=Tone)

class CopyCheckRequest(CamelModel):
    """A validated copy-check input."""
    text: str
    platform: Platform
    asset_type: AssetType
    reading_level_target: str = "Grade 7"
    constraints: Constraints
    brand: Brand = Field(default_factory=Brand)

class Score(CamelModel):
    """Informational quality scores, each 0..1."""
    clarity: float = 0.0
    brevity: float = 0.0
    hook: float = 0.0
    fit: float = 0.0
    reading_level: str = "Unknown"

class Suggestion(CamelModel):
    text: str

class Variant(CamelModel):
    label: str = ""
    text: str = ""

class CopyCheckResponse(CamelModel):
    """Full response for a copy check."""
    score: Score
    flags: List[str] = []
    suggestion: Suggestion
    variants: List[Variant] = []
    explanations: List[str] = []

class ErrorResponse(BaseModel):
    error: str
