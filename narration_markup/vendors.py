from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field

from narration_markup.models import (
    OutputContainer,
    ProsodySettings,
    Term,
    TtsVendor,
    has_any_transcription,
)

LIMITED_MARKUP_WARNING = "This vendor has limited SSML support."
PHONEME_IGNORED_WARNING = "IPA phoneme tags will be ignored for this vendor."


class PitchUnit(str, Enum):
    SEMITONES = "st"
    PERCENT = "%"


class VendorCapability(BaseModel):
    """Static description of what a vendor honours in a markup document."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    vendor_id: TtsVendor
    name: str
    api_key_env: str = Field(description="Environment variable holding the API key.")
    supports_markup: bool
    supports_phoneme_override: bool
    supports_streaming: bool = False
    pitch_unit: PitchUnit = PitchUnit.SEMITONES
    supported_containers: FrozenSet[OutputContainer]


class VoiceProfile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    name: str
    vendor: TtsVendor
    tags: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    description: str = ""


_CAPABILITIES: Dict[TtsVendor, VendorCapability] = {
    TtsVendor.GOOGLE: VendorCapability(
        vendor_id=TtsVendor.GOOGLE,
        name="Google (Gemini)",
        api_key_env="GEMINI_API_KEY",
        supports_markup=True,
        supports_phoneme_override=True,
        supports_streaming=True,
        supported_containers=frozenset({OutputContainer.MP3, OutputContainer.WAV}),
    ),
    TtsVendor.ELEVENLABS: VendorCapability(
        vendor_id=TtsVendor.ELEVENLABS,
        name="ElevenLabs",
        api_key_env="ELEVENLABS_API_KEY",
        supports_markup=False,
        supports_phoneme_override=False,
        supports_streaming=True,
        supported_containers=frozenset(OutputContainer),
    ),
    TtsVendor.OPENAI: VendorCapability(
        vendor_id=TtsVendor.OPENAI,
        name="OpenAI",
        api_key_env="OPENAI_API_KEY",
        supports_markup=False,
        supports_phoneme_override=False,
        supported_containers=frozenset(OutputContainer),
    ),
}

_HISTORICAL_LANGUAGES = ["EN", "HY", "RU", "FR", "DE", "ES"]
_OPENAI_LANGUAGES = ["EN", "ES", "FR", "DE", "IT", "PT", "RU"]

VOICE_PROFILES: List[VoiceProfile] = [
    VoiceProfile(
        id="Puck",
        name="Puck",
        vendor=TtsVendor.GOOGLE,
        tags=["Male", "Neutral", "Clear"],
        languages=_HISTORICAL_LANGUAGES,
        description="Clear and neutral male voice",
    ),
    VoiceProfile(
        id="Charon",
        name="Charon",
        vendor=TtsVendor.GOOGLE,
        tags=["Male", "Deep", "Somber"],
        languages=_HISTORICAL_LANGUAGES,
        description="Deep and somber male voice, suited for historical content",
    ),
    VoiceProfile(
        id="Kore",
        name="Kore",
        vendor=TtsVendor.GOOGLE,
        tags=["Female", "Warm", "Gentle"],
        languages=_HISTORICAL_LANGUAGES,
        description="Warm and gentle female voice",
    ),
    VoiceProfile(
        id="Fenrir",
        name="Fenrir",
        vendor=TtsVendor.GOOGLE,
        tags=["Male", "Strong", "Dramatic"],
        languages=_HISTORICAL_LANGUAGES,
        description="Strong and dramatic male voice",
    ),
    VoiceProfile(
        id="Aoede",
        name="Aoede",
        vendor=TtsVendor.GOOGLE,
        tags=["Female", "Expressive", "Narrator"],
        languages=_HISTORICAL_LANGUAGES,
        description="Expressive female narrator voice",
    ),
    VoiceProfile(
        id="eleven_rachel",
        name="Rachel",
        vendor=TtsVendor.ELEVENLABS,
        tags=["Female", "American", "Calm"],
        languages=["EN"],
        description="Calm American female voice",
    ),
    VoiceProfile(
        id="eleven_adam",
        name="Adam",
        vendor=TtsVendor.ELEVENLABS,
        tags=["Male", "American", "Deep"],
        languages=["EN"],
        description="Deep American male voice",
    ),
    VoiceProfile(
        id="eleven_antoni",
        name="Antoni",
        vendor=TtsVendor.ELEVENLABS,
        tags=["Male", "British", "Narrator"],
        languages=["EN"],
        description="British narrator voice",
    ),
    VoiceProfile(
        id="alloy",
        name="Alloy",
        vendor=TtsVendor.OPENAI,
        tags=["Neutral", "Clear", "Versatile"],
        languages=_OPENAI_LANGUAGES,
        description="Neutral and versatile voice",
    ),
    VoiceProfile(
        id="echo",
        name="Echo",
        vendor=TtsVendor.OPENAI,
        tags=["Male", "Warm", "Engaging"],
        languages=_OPENAI_LANGUAGES,
        description="Warm and engaging male voice",
    ),
    VoiceProfile(
        id="fable",
        name="Fable",
        vendor=TtsVendor.OPENAI,
        tags=["Female", "Expressive", "Storyteller"],
        languages=_OPENAI_LANGUAGES,
        description="Expressive storyteller voice",
    ),
    VoiceProfile(
        id="onyx",
        name="Onyx",
        vendor=TtsVendor.OPENAI,
        tags=["Male", "Deep", "Authoritative"],
        languages=_OPENAI_LANGUAGES,
        description="Deep authoritative voice",
    ),
    VoiceProfile(
        id="nova",
        name="Nova",
        vendor=TtsVendor.OPENAI,
        tags=["Female", "Friendly", "Natural"],
        languages=_OPENAI_LANGUAGES,
        description="Friendly and natural female voice",
    ),
]


def capability_for(vendor: TtsVendor | str) -> VendorCapability:
    """Capability record for ``vendor``; accepts the enum or its string value."""

    return _CAPABILITIES[TtsVendor(vendor)]


def supports_markup(vendor: TtsVendor | str) -> bool:
    return capability_for(vendor).supports_markup


def container_supported(
    vendor: TtsVendor | str, container: OutputContainer | str
) -> bool:
    return OutputContainer(container) in capability_for(vendor).supported_containers


def voices_for_vendor(vendor: TtsVendor | str) -> List[VoiceProfile]:
    vendor = TtsVendor(vendor)
    return [voice for voice in VOICE_PROFILES if voice.vendor == vendor]


def default_voice(vendor: TtsVendor | str) -> VoiceProfile:
    return voices_for_vendor(vendor)[0]


def get_warnings(
    vendor: TtsVendor | str, has_phonetic_transcription: bool
) -> List[str]:
    """Advisory strings for markup features ``vendor`` will drop.

    Fully capable vendors yield an empty list. Recompute on every settings change.
    """

    warnings: List[str] = []
    if not supports_markup(vendor):
        warnings.append(LIMITED_MARKUP_WARNING)
        if has_phonetic_transcription:
            warnings.append(PHONEME_IGNORED_WARNING)
    return warnings


def get_settings_warnings(settings: ProsodySettings, terms: List[Term]) -> List[str]:
    """Markup warnings followed by any container mismatch for ``settings``."""

    warnings = get_warnings(settings.vendor, has_any_transcription(terms))
    if not container_supported(settings.vendor, settings.output_container):
        capability = capability_for(settings.vendor)
        supported = ", ".join(
            sorted(container.value for container in capability.supported_containers)
        )
        warnings.append(
            f"{capability.name} does not produce {settings.output_container.value} "
            f"natively; audio will be re-encoded from {supported}."
        )
    return warnings
