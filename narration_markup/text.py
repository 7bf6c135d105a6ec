from __future__ import annotations

import re
from typing import Dict, List, NamedTuple, Optional, Sequence

from loguru import logger

from narration_markup.models import Term, clamp_setting

_XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}
_XML_RESERVED_RE = re.compile(r"[&<>\"']")

# Tags produced by this module; text between them is already escaped.
_TAG_RE = re.compile(r"(<[^<>]*>)")
# Closing quotes and brackets stay attached to the punctuation they follow.
_CLOSING_RUN = r"(?:&quot;|&apos;|[)\]\u201d\u2019\u00bb])*"
_SENTENCE_END_RE = re.compile(rf"([.?!]+{_CLOSING_RUN})(\s+)")
_COMMA_RE = re.compile(rf"(,{_CLOSING_RUN})(\s+)")

_PAUSE_FLOOR = 0.2
_COMMA_PAUSE_THRESHOLD = 0.5

# Combining marks continue a word even though `\w` excludes them.
_COMBINING_MARKS = (
    "\u0300-\u036f\u0483-\u0489\u0591-\u05bd"
    "\u1ab0-\u1aff\u1dc0-\u1dff\u20d0-\u20ff\ufe20-\ufe2f"
)


def escape_markup(text: str) -> str:
    """Escape the five reserved XML characters. Not idempotent: apply once."""

    if not text:
        return text
    return _XML_RESERVED_RE.sub(lambda match: _XML_ESCAPES[match.group()], text)


# ---------- Term matching ----------


class TermSpan(NamedTuple):
    start: int
    end: int
    term: Term


def _override_terms(terms: Sequence[Term]) -> List[Term]:
    """Usable override terms keyed by lowercase text, longest first.

    Terms without a transcription claim nothing. For duplicate keys the first
    entry carrying a transcription wins.
    """

    by_key: Dict[str, Term] = {}
    for term in terms:
        key = term.key()
        if not key or not term.has_transcription():
            continue
        by_key.setdefault(key, term)
    return sorted(
        by_key.values(), key=lambda term: len(term.text.strip()), reverse=True
    )


def _term_pattern(terms: Sequence[Term]) -> Optional[re.Pattern[str]]:
    if not terms:
        return None
    alternatives = "|".join(
        f"(?P<t{index}>{re.escape(term.text.strip())})"
        for index, term in enumerate(terms)
    )
    word = rf"[\w{_COMBINING_MARKS}]"
    return re.compile(rf"(?<!{word})(?:{alternatives})(?!{word})", re.IGNORECASE)


def find_term_spans(content: str, terms: Sequence[Term]) -> List[TermSpan]:
    """Non-overlapping, left-to-right spans of glossary terms in ``content``.

    One combined alternation is scanned once; alternatives are ordered longest
    first so "Western Armenia" claims its span before "Armenia" can.
    """

    candidates = _override_terms(terms)
    pattern = _term_pattern(candidates)
    if pattern is None or not content:
        return []
    spans = [
        TermSpan(match.start(), match.end(), candidates[int(match.lastgroup[1:])])
        for match in pattern.finditer(content)
        if match.lastgroup
    ]
    logger.debug(
        "markup.terms candidates={candidates} matched={matched}",
        candidates=len(candidates),
        matched=len(spans),
    )
    return spans


def render_phoneme(surface: str, transcription: str) -> str:
    return (
        f'<phoneme alphabet="ipa" ph="{escape_markup(transcription.strip())}">'
        f"{escape_markup(surface)}</phoneme>"
    )


def insert_phonemes(
    content: str, terms: Sequence[Term], phoneme_override: bool = True
) -> str:
    """Escape ``content`` and wrap matched terms in phoneme overrides.

    Characters outside the spans are preserved exactly; the visible text inside a
    span keeps the casing found in ``content``. With ``phoneme_override`` off the
    result is simply the escaped content.
    """

    if not phoneme_override:
        return escape_markup(content)

    pieces: List[str] = []
    cursor = 0
    for span in find_term_spans(content, terms):
        pieces.append(escape_markup(content[cursor : span.start]))
        transcription = span.term.phonetic_transcription or ""
        pieces.append(render_phoneme(content[span.start : span.end], transcription))
        cursor = span.end
    pieces.append(escape_markup(content[cursor:]))
    return "".join(pieces)


# ---------- Pausing ----------


def sentence_pause_ms(intensity: float) -> int:
    """400ms at the floor up to 880ms at full intensity."""

    intensity = clamp_setting("pausing", intensity)
    return round(400 + (intensity - _PAUSE_FLOOR) * 600)


def comma_pause_ms(intensity: float) -> Optional[int]:
    intensity = clamp_setting("pausing", intensity)
    if intensity <= _COMMA_PAUSE_THRESHOLD:
        return None
    return round(200 + (intensity - _PAUSE_FLOOR) * 300)


def _break_tag(milliseconds: int) -> str:
    return f'<break time="{milliseconds}ms"/>'


def insert_pausing(markup: str, intensity: float) -> str:
    """Insert timed breaks after sentence ends (and commas at high intensity).

    ``markup`` is escaped text that may already hold phoneme spans. Breaks go
    after the punctuation run and its trailing whitespace, only in text outside
    any element, so override spans and attribute values are never touched.
    At or below intensity 0.2 the input is returned unchanged.
    """

    if clamp_setting("pausing", intensity) <= _PAUSE_FLOOR:
        return markup

    sentence_break = _break_tag(sentence_pause_ms(intensity))
    comma_ms = comma_pause_ms(intensity)
    comma_break = _break_tag(comma_ms) if comma_ms is not None else None

    depth = 0
    inserted = 0
    pieces: List[str] = []
    for piece in _TAG_RE.split(markup):
        if _TAG_RE.fullmatch(piece):
            if piece.startswith("</"):
                depth = max(0, depth - 1)
            elif not piece.endswith("/>"):
                depth += 1
            pieces.append(piece)
            continue
        if depth or not piece:
            pieces.append(piece)
            continue
        piece, count = _SENTENCE_END_RE.subn(rf"\1\2{sentence_break}", piece)
        inserted += count
        if comma_break is not None:
            piece, count = _COMMA_RE.subn(rf"\1\2{comma_break}", piece)
            inserted += count
        pieces.append(piece)

    logger.debug(
        "markup.pausing intensity={intensity} breaks={breaks}",
        intensity=intensity,
        breaks=inserted,
    )
    return "".join(pieces)


# ---------- Plain-text vendors ----------


def pronunciation_prompt(content: str, terms: Sequence[Term]) -> str:
    """Plain text plus a trailing pronunciation guide for vendors without markup."""

    seen = set()
    entries: List[str] = []
    for term in terms:
        key = term.key()
        if not key or key in seen or not term.has_transcription():
            continue
        seen.add(key)
        entries.append(
            f'"{term.text.strip()}" should be pronounced as '
            f'"{(term.phonetic_transcription or "").strip()}"'
        )
    if not entries:
        return content
    return f"{content}\n\n[Pronunciation guide: {', '.join(entries)}]"
