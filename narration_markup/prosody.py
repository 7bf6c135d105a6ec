from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict

from narration_markup.models import ProsodySettings, clamp_setting
from narration_markup.vendors import PitchUnit, capability_for

# Pitch span reached at solemnity 0 (upward) and 2 (downward).
_PITCH_SEMITONE_SPAN = 4
_PITCH_PERCENT_SPAN = 10
# Volume span reached at ambience 0 (quieter) and 1 (louder).
_VOLUME_DB_SPAN = 2


class EmphasisLevel(str, Enum):
    REDUCED = "reduced"
    NONE = "none"
    MODERATE = "moderate"
    STRONG = "strong"


# Upper bound (inclusive) of each bucket; anything above the last is STRONG.
_EMPHASIS_THRESHOLDS: Tuple[Tuple[float, EmphasisLevel], ...] = (
    (0.5, EmphasisLevel.REDUCED),
    (1.0, EmphasisLevel.NONE),
    (1.5, EmphasisLevel.MODERATE),
)


def _signed(value: int, unit: str) -> str:
    return f"+{value}{unit}" if value > 0 else f"{value}{unit}"


def map_pacing(multiplier: float) -> str:
    """Speaking-rate percentage, e.g. 0.95 -> ``"95%"``."""

    return f"{round(clamp_setting('pacing_multiplier', multiplier) * 100)}%"


def map_solemnity(solemnity: float, unit: PitchUnit = PitchUnit.SEMITONES) -> str:
    """Pitch shift; 1.0 is neutral and higher solemnity lowers the voice."""

    offset = 1.0 - clamp_setting("solemnity", solemnity)
    span = _PITCH_SEMITONE_SPAN if unit == PitchUnit.SEMITONES else _PITCH_PERCENT_SPAN
    return _signed(int(round(offset * span)), unit.value)


def map_emphasis(strength: float) -> EmphasisLevel:
    strength = clamp_setting("emphasis_strength", strength)
    for upper, level in _EMPHASIS_THRESHOLDS:
        if strength <= upper:
            return level
    return EmphasisLevel.STRONG


def map_ambience(ambience: float) -> str:
    """Volume offset in dB, zero at 0.5."""

    offset = clamp_setting("ambience", ambience) - 0.5
    return _signed(int(round(offset * 2 * _VOLUME_DB_SPAN)), "dB")


class ProsodyAttributes(BaseModel):
    """Attribute strings exactly as the vendor parses them."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rate: str
    pitch: str
    volume: str
    emphasis: EmphasisLevel

    def prosody_attrs(self) -> Dict[str, str]:
        return {"rate": self.rate, "pitch": self.pitch, "volume": self.volume}


def map_settings(settings: ProsodySettings) -> ProsodyAttributes:
    capability = capability_for(settings.vendor)
    return ProsodyAttributes(
        rate=map_pacing(settings.pacing_multiplier),
        pitch=map_solemnity(settings.solemnity, capability.pitch_unit),
        volume=map_ambience(settings.ambience),
        emphasis=map_emphasis(settings.emphasis_strength),
    )
