import re
from typing import List

import pytest

from narration_markup.models import Term, TermCategory
from narration_markup.text import (
    comma_pause_ms,
    escape_markup,
    find_term_spans,
    insert_pausing,
    insert_phonemes,
    pronunciation_prompt,
    sentence_pause_ms,
)

_ENTITY_RE = re.compile(r"&(?:amp|lt|gt|quot|apos);")


def test_escape_markup_covers_reserved_characters() -> None:
    raw = "<a & \"b\" 'c'>"
    assert escape_markup(raw) == "&lt;a &amp; &quot;b&quot; &apos;c&apos;&gt;"


@pytest.mark.parametrize(
    "raw",
    ["", "plain", "Tom & Jerry", "a<b>c", "\"quoted\" and 'single'", "&amp; already"],
)
def test_escape_leaves_no_bare_reserved_characters(raw: str) -> None:
    stripped = _ENTITY_RE.sub("", escape_markup(raw))
    assert not set(stripped) & set("&<>\"'")


def test_escape_is_not_idempotent() -> None:
    assert escape_markup(escape_markup("&")) == "&amp;amp;"


def test_longest_term_claims_its_span(memorial_terms: List[Term]) -> None:
    output = insert_phonemes("Western Armenia was affected", memorial_terms)

    assert output.count("<phoneme") == 1
    assert '>Western Armenia</phoneme>' in output
    assert output.endswith(" was affected")


def test_shorter_term_still_matches_elsewhere(memorial_terms: List[Term]) -> None:
    spans = find_term_spans("Armenia and Western Armenia", memorial_terms)

    assert [(span.start, span.end) for span in spans] == [(0, 7), (12, 27)]
    assert [span.term.text for span in spans] == ["Armenia", "Western Armenia"]


def test_matching_is_case_insensitive_and_keeps_source_casing(
    memorial_terms: List[Term],
) -> None:
    output = insert_phonemes("ARMENIA remembers.", memorial_terms)
    assert output == '<phoneme alphabet="ipa" ph="ɑrˈmɛniɑ">ARMENIA</phoneme> remembers.'


def test_matching_is_whole_word_only() -> None:
    terms = [Term(text="Ani", phonetic_transcription="ɑˈni")]
    spans = find_term_spans("Anipemza lies far from Ani.", terms)

    assert len(spans) == 1
    assert spans[0].start == len("Anipemza lies far from ")


@pytest.mark.parametrize("content", ["Ani\u0300 stands.", "\u0301Ani stands."])
def test_combining_marks_extend_the_word(content: str) -> None:
    terms = [Term(text="Ani", phonetic_transcription="ɑˈni")]
    assert find_term_spans(content, terms) == []
    assert insert_phonemes(content, terms) == content


def test_terms_without_transcription_pass_through(memorial_terms: List[Term]) -> None:
    content = "Komitas sang."
    assert insert_phonemes(content, memorial_terms) == content


def test_empty_term_text_is_never_matched() -> None:
    terms = [Term(text="", phonetic_transcription="x"), Term(text="  ", phonetic_transcription="y")]
    assert find_term_spans("anything at all", terms) == []
    assert insert_phonemes("a & b", terms) == "a &amp; b"


def test_duplicate_terms_prefer_the_entry_with_transcription() -> None:
    terms = [
        Term(text="van", category=TermCategory.TOPONYM),
        Term(text="Van", category=TermCategory.TOPONYM, phonetic_transcription="vɑn"),
        Term(text="VAN", category=TermCategory.TOPONYM, phonetic_transcription="other"),
    ]
    spans = find_term_spans("Lake Van.", terms)

    assert len(spans) == 1
    assert spans[0].term.phonetic_transcription == "vɑn"


def test_short_term_never_matches_inside_inserted_markup() -> None:
    # "ipa" would corrupt alphabet="ipa" under sequential per-term replacement.
    terms = [
        Term(text="ipa", phonetic_transcription="ˈiːpə"),
        Term(text="Mount Ipa", phonetic_transcription="mɑʊnt ˈiːpə"),
    ]
    output = insert_phonemes("Mount Ipa and ipa.", terms)

    assert output.count("<phoneme") == 2
    assert output.count('alphabet="ipa"') == 2
    assert ">Mount Ipa</phoneme> and <phoneme" in output


def test_plain_text_around_terms_is_escaped_once() -> None:
    terms = [Term(text="Ani", phonetic_transcription="ɑˈni")]
    output = insert_phonemes('Visit "Ani" & Kars', terms)

    assert output == (
        'Visit &quot;<phoneme alphabet="ipa" ph="ɑˈni">Ani</phoneme>&quot; &amp; Kars'
    )


def test_phoneme_override_disabled_only_escapes(memorial_terms: List[Term]) -> None:
    output = insert_phonemes("Armenia & Tsitsernakaberd", memorial_terms, phoneme_override=False)
    assert output == "Armenia &amp; Tsitsernakaberd"


@pytest.mark.parametrize("intensity", [0.0, 0.05, 0.1, 0.2, -1.0])
@pytest.mark.parametrize(
    "text",
    ["", "One. Two, three! Four?", "No punctuation here", "Wait... what?! Yes."],
)
def test_pausing_is_noop_at_low_intensity(text: str, intensity: float) -> None:
    assert insert_pausing(text, intensity) == text


def test_pausing_full_intensity_breaks_sentences_and_commas() -> None:
    output = insert_pausing("One. Two, three! Four", 1.0)
    assert output == (
        'One. <break time="880ms"/>Two, <break time="440ms"/>three! '
        '<break time="880ms"/>Four'
    )


def test_pausing_mid_intensity_skips_commas() -> None:
    output = insert_pausing("One. Two, three! Four", 0.5)
    assert output == 'One. <break time="580ms"/>Two, three! <break time="580ms"/>Four'


def test_pausing_keeps_punctuation_runs_together() -> None:
    output = insert_pausing("Really?! Yes... fine", 0.6)
    assert output.count("<break") == 2
    assert "?! <break" in output
    assert "... <break" in output


@pytest.mark.parametrize(
    "text,expected",
    [
        ('"Stop." Then', '&quot;Stop.&quot; <break time="580ms"/>Then'),
        ("(Gone!) Then", '(Gone!) <break time="580ms"/>Then'),
        ("\u201cNever.\u201d Then", '\u201cNever.\u201d <break time="580ms"/>Then'),
    ],
)
def test_pausing_follows_closing_quotes_and_brackets(text: str, expected: str) -> None:
    assert insert_pausing(escape_markup(text), 0.5) == expected


def test_comma_pause_follows_closing_quote() -> None:
    output = insert_pausing(escape_markup('"Yes," she said'), 1.0)
    assert output == '&quot;Yes,&quot; <break time="440ms"/>she said'


def test_pausing_never_enters_phoneme_spans() -> None:
    terms = [Term(text="St. Gregory", phonetic_transcription="seɪnt ˈɡrɛɡəri")]
    markup = insert_phonemes("St. Gregory spoke. Then silence.", terms)
    output = insert_pausing(markup, 1.0)

    assert output.count("<break") == 1
    assert '>St. Gregory</phoneme> spoke. <break time="880ms"/>Then silence.' in output


@pytest.mark.parametrize("low,high", [(0.21, 0.4), (0.4, 0.7), (0.7, 1.0)])
def test_sentence_pause_grows_with_intensity(low: float, high: float) -> None:
    assert sentence_pause_ms(low) < sentence_pause_ms(high)


def test_pause_duration_bounds() -> None:
    assert sentence_pause_ms(0.2) == 400
    assert sentence_pause_ms(1.0) == 880
    assert comma_pause_ms(0.5) is None
    assert comma_pause_ms(1.0) == 440
    assert comma_pause_ms(3.0) == 440


def test_pronunciation_prompt_appends_guide(memorial_terms: List[Term]) -> None:
    prompt = pronunciation_prompt("Welcome to Tsitsernakaberd.", memorial_terms)

    assert prompt.startswith("Welcome to Tsitsernakaberd.\n\n[Pronunciation guide: ")
    assert '"Tsitsernakaberd" should be pronounced as "t͡sit͡sɛrnɑkɑˈbɛrt"' in prompt
    assert "Komitas" not in prompt
    assert prompt.endswith("]")


def test_pronunciation_prompt_without_transcriptions_is_plain() -> None:
    terms = [Term(text="Komitas", category=TermCategory.PERSON)]
    assert pronunciation_prompt("Komitas sang.", terms) == "Komitas sang."
