"""
Markup composition (text + glossary + settings -> vendor document).

Stages run in a fixed order inside ``MarkupStrategy.compose``:

1. ``insert_phonemes`` escapes the raw content exactly once and wraps glossary
   matches in phoneme overrides.
2. ``insert_pausing`` adds breaks to text outside elements; it expects escaped
   input and never edits inside a phoneme span.
3. ``map_settings`` turns numeric settings into attribute strings.
4. The strategy wraps the result in the envelope the vendor accepts.

Strategies are picked once per call from the vendor capability table.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from loguru import logger

from narration_markup.models import ProsodySettings, SynthesisResult, Term
from narration_markup.prosody import ProsodyAttributes, map_settings
from narration_markup.text import escape_markup, insert_pausing, insert_phonemes
from narration_markup.vendors import (
    VendorCapability,
    capability_for,
    get_settings_warnings,
)

PREVIEW_CHAR_BUDGET = 500
PREVIEW_ELLIPSIS = "..."


def _speak_open(language: str) -> str:
    return f'<speak version="1.0" xml:lang="{escape_markup(language.lower())}">'


class MarkupStrategy(ABC):
    def __init__(self, capability: VendorCapability) -> None:
        self.capability = capability

    @abstractmethod
    def render_content(
        self, content: str, terms: Sequence[Term], settings: ProsodySettings
    ) -> str:
        """Escaped inner content, annotated as far as the vendor allows."""

    @abstractmethod
    def wrap(self, inner: str, attributes: ProsodyAttributes, language: str) -> str:
        """Envelope required by the vendor around ``inner``."""

    def compose(
        self,
        content: str,
        terms: Sequence[Term],
        settings: ProsodySettings,
        language: str,
    ) -> str:
        inner = self.render_content(content, terms, settings)
        return self.wrap(inner, map_settings(settings), language)


class FullMarkupStrategy(MarkupStrategy):
    """speak > prosody(rate, pitch, volume) > emphasis > phonemes and breaks."""

    def render_content(
        self, content: str, terms: Sequence[Term], settings: ProsodySettings
    ) -> str:
        processed = insert_phonemes(
            content, terms, phoneme_override=self.capability.supports_phoneme_override
        )
        return insert_pausing(processed, settings.pausing)

    def wrap(self, inner: str, attributes: ProsodyAttributes, language: str) -> str:
        return (
            f"{_speak_open(language)}\n"
            f'  <prosody rate="{attributes.rate}" pitch="{attributes.pitch}" '
            f'volume="{attributes.volume}">\n'
            f'    <emphasis level="{attributes.emphasis.value}">\n'
            f"      {inner}\n"
            "    </emphasis>\n"
            "  </prosody>\n"
            "</speak>"
        )


class PlainTextStrategy(MarkupStrategy):
    """Escaped text inside the speak + rate envelope; no expressive tags."""

    def render_content(
        self, content: str, terms: Sequence[Term], settings: ProsodySettings
    ) -> str:
        return escape_markup(content)

    def wrap(self, inner: str, attributes: ProsodyAttributes, language: str) -> str:
        return (
            f"{_speak_open(language)}\n"
            f'  <prosody rate="{attributes.rate}">\n'
            f"    {inner}\n"
            "  </prosody>\n"
            "</speak>"
        )


def strategy_for(capability: VendorCapability) -> MarkupStrategy:
    if capability.supports_markup:
        return FullMarkupStrategy(capability)
    return PlainTextStrategy(capability)


def synthesize(
    content: str,
    terms: Sequence[Term],
    settings: ProsodySettings,
    language: str,
) -> str:
    """Full markup document for ``content`` targeting ``settings.vendor``."""

    capability = capability_for(settings.vendor)
    strategy = strategy_for(capability)
    logger.debug(
        "markup.compose vendor={vendor} strategy={strategy} chars={chars} terms={terms}",
        vendor=capability.vendor_id.value,
        strategy=type(strategy).__name__,
        chars=len(content),
        terms=len(terms),
    )
    return strategy.compose(content, terms, settings, language)


def truncate_for_preview(content: str, budget: int = PREVIEW_CHAR_BUDGET) -> str:
    if len(content) <= budget:
        return content
    logger.debug(
        "markup.preview truncated chars={chars} budget={budget}",
        chars=len(content),
        budget=budget,
    )
    return content[:budget] + PREVIEW_ELLIPSIS


def synthesize_preview(
    content: str,
    terms: Sequence[Term],
    settings: ProsodySettings,
    language: str,
) -> str:
    """Same as ``synthesize`` on the first 500 characters of ``content``.

    Truncation happens on raw text, before any markup exists.
    """

    return synthesize(truncate_for_preview(content), terms, settings, language)


def synthesize_document(
    content: str,
    terms: Sequence[Term],
    settings: ProsodySettings,
    language: str,
    *,
    preview: bool = False,
) -> SynthesisResult:
    render = synthesize_preview if preview else synthesize
    warnings: List[str] = get_settings_warnings(settings, list(terms))
    return SynthesisResult(
        markup_document=render(content, terms, settings, language),
        warnings=warnings,
    )
