from typing import Callable, List

import pytest
from lxml import etree

from narration_markup.models import ProsodySettings, Term, TermCategory, TtsVendor


@pytest.fixture()
def memorial_terms() -> List[Term]:
    return [
        Term(
            text="Tsitsernakaberd",
            category=TermCategory.TOPONYM,
            phonetic_transcription="t͡sit͡sɛrnɑkɑˈbɛrt",
        ),
        Term(
            text="Armenia",
            category=TermCategory.TOPONYM,
            phonetic_transcription="ɑrˈmɛniɑ",
        ),
        Term(
            text="Western Armenia",
            category=TermCategory.TOPONYM,
            phonetic_transcription="ˈwɛstərn ɑrˈmɛniɑ",
        ),
        Term(text="Komitas", category=TermCategory.PERSON),
    ]


@pytest.fixture()
def google_settings() -> ProsodySettings:
    return ProsodySettings(
        vendor=TtsVendor.GOOGLE,
        pacing_multiplier=0.95,
        emphasis_strength=0.85,
        solemnity=1.2,
    )


@pytest.fixture()
def parse_markup() -> Callable[[str], etree._Element]:
    """Parse a composed document, failing the test if it is not well-formed."""

    def _parse(document: str) -> etree._Element:
        return etree.fromstring(document.encode("utf-8"))

    return _parse
