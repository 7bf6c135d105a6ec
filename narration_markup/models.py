from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_xml import BaseXmlModel, attr, element

# ---------- Glossary ----------


class TermCategory(str, Enum):
    """Kinds of glossary terms surfaced by term detection or manual edits."""

    TOPONYM = "toponym"
    PERSON = "person"
    ETHNIC_GROUP = "ethnic_group"
    HISTORICAL_CONCEPT = "historical_concept"
    DATE = "date"


class Term(BaseXmlModel, tag="term", skip_empty=True):
    """Glossary entry; identity is the case-insensitive ``text``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str = attr(description="Surface form exactly as it appears in narration.")
    category: TermCategory = attr(
        default=TermCategory.HISTORICAL_CONCEPT,
        description="Glossary classification of this term.",
    )
    phonetic_transcription: Optional[str] = attr(
        name="phonetic-transcription",
        default=None,
        description="IPA transcription used for pronunciation overrides.",
    )

    def key(self) -> str:
        return self.text.strip().lower()

    def has_transcription(self) -> bool:
        return bool(self.phonetic_transcription and self.phonetic_transcription.strip())


class Glossary(BaseXmlModel, tag="glossary", skip_empty=True):
    """Ordered term list persisted next to a script."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    language: Optional[str] = attr(default=None, description="Target language tag.")
    terms: List[Term] = element(
        tag="term",
        default_factory=list,
        description="Terms in the order the detector or editor produced them.",
    )


def has_any_transcription(terms: List[Term]) -> bool:
    return any(term.has_transcription() for term in terms)


# ---------- Vendors and settings ----------


class TtsVendor(str, Enum):
    GOOGLE = "google"
    ELEVENLABS = "elevenlabs"
    OPENAI = "openai"


class OutputContainer(str, Enum):
    MP3 = "mp3"
    WAV = "wav"
    OGG = "ogg"


# Documented ranges; settings outside them are clamped, never rejected.
_SETTING_LIMITS: Dict[str, Tuple[float, float]] = {
    "emphasis_strength": (0.0, 2.0),
    "solemnity": (0.0, 2.0),
    "pacing_multiplier": (0.5, 2.0),
    "pausing": (0.0, 1.0),
    "ambience": (0.0, 1.0),
}


def clamp_setting(name: str, value: float) -> float:
    lower, upper = _SETTING_LIMITS[name]
    return max(lower, min(upper, float(value)))


class ProsodySettings(BaseModel):
    """
    Delivery knobs for one synthesis request. Immutable; derive variants with
    ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    vendor: TtsVendor = Field(
        default=TtsVendor.GOOGLE, description="TTS vendor receiving the document."
    )
    voice_identifier: str = Field(
        default="Charon", description="Vendor voice id passed alongside the markup."
    )
    emphasis_strength: float = Field(
        1.0, description="0-2; mapped to a discrete emphasis level."
    )
    solemnity: float = Field(
        1.0, description="0-2; higher lowers the pitch, 1.0 neutral."
    )
    pacing_multiplier: float = Field(
        1.0, description="0.5-2.0 speaking-rate multiplier."
    )
    pausing: float = Field(
        0.5, description="Pause intensity; <=0.2 keeps vendor pausing."
    )
    ambience: float = Field(
        0.5, description="0-1 volume offset, 0.5 neutral."
    )
    output_container: OutputContainer = Field(
        default=OutputContainer.MP3, description="Requested audio container."
    )

    @field_validator(*_SETTING_LIMITS, mode="after")
    @classmethod
    def _clamp_ranges(cls, value: float, info: ValidationInfo) -> float:
        # Runs after coercion, so numeric strings clamp like numbers.
        return clamp_setting(info.field_name, value)


class SynthesisResult(BaseModel):
    """Markup document plus advisory warnings for one request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    markup_document: str = Field(description="Vendor-ready markup string.")
    warnings: List[str] = Field(
        default_factory=list,
        description="Features the vendor will silently ignore, in display order.",
    )
