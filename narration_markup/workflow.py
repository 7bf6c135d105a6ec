"""
Narration markup toolchain (script + glossary -> vendor markup).

File-first CLI around the pure composer in ``narration_markup.ssml``. A script is
plain UTF-8 text, a glossary is ``<glossary>`` XML, and settings are either flags
or a JSON file holding a ``ProsodySettings`` payload. Outputs land under
``workspace_dir`` unless an absolute path is given; ``--force`` overwrites.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import fire
from loguru import logger

from narration_markup.models import (
    Glossary,
    ProsodySettings,
    Term,
    has_any_transcription,
)
from narration_markup.ssml import synthesize_document
from narration_markup.text import pronunciation_prompt
from narration_markup.vendors import get_warnings, voices_for_vendor

WORKSPACE_DIR = Path(os.environ.get("WORKSPACE_DIR", "/data/workspace"))


def load_glossary(glossary_path: Path) -> Glossary:
    """Read a glossary XML artifact from disk."""

    if not glossary_path.exists():
        raise FileNotFoundError(f"Glossary {glossary_path} does not exist.")
    return Glossary.from_xml(glossary_path.read_text(encoding="utf-8"))


def save_glossary(glossary: Glossary, glossary_path: Path) -> Path:
    payload = glossary.to_xml(encoding="unicode", pretty_print=True, skip_empty=True)
    assert isinstance(payload, str)
    glossary_path.parent.mkdir(parents=True, exist_ok=True)
    glossary_path.write_text(payload, encoding="utf-8")
    logger.debug("glossary.saved path={} terms={}", glossary_path, len(glossary.terms))
    return glossary_path


def load_settings(settings_path: Path) -> ProsodySettings:
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file {settings_path} does not exist.")
    payload = settings_path.read_text(encoding="utf-8")
    return ProsodySettings.model_validate_json(payload)


class MarkupToolchain:
    """Markup synthesis exposed as CLI commands."""

    def __init__(
        self,
        workspace_dir: Path | str = WORKSPACE_DIR / "markup",
        force: bool = False,
    ) -> None:
        """Initialize output locations and execution flags.

        Logging is left to the host process; set ``LOGURU_LEVEL=INFO`` to hide
        stage-level debug events (term matches, pauses, truncation).

        Args:
            workspace_dir: Base directory for relative output paths.
            force: Whether to overwrite existing output files.
        """
        self.force = force
        self.workspace_dir = Path(workspace_dir)

    # —————————————————— Utilities ——————————————————

    def _resolve_output(self, out: Path | str) -> Path:
        """Resolve ``out`` under ``workspace_dir`` and apply the overwrite policy."""
        path = Path(out)
        if not path.is_absolute():
            path = self.workspace_dir / path
        if path.exists():
            if path.is_dir():
                raise FileExistsError(f"Output path is a directory: {path}")
            if not self.force:
                raise FileExistsError(f"Output {path} exists; rerun with --force.")
            logger.warning("Overwriting existing output: {path}", path=path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def _read_script(script: Path | str) -> str:
        script_path = Path(script)
        if not script_path.exists():
            raise FileNotFoundError(f"Script {script_path} does not exist.")
        return script_path.read_text(encoding="utf-8")

    @staticmethod
    def _terms(glossary: Optional[Path | str]) -> List[Term]:
        if not glossary:
            return []
        return list(load_glossary(Path(glossary)).terms)

    @staticmethod
    def _settings(
        settings: Optional[Path | str], overrides: Dict[str, Any]
    ) -> ProsodySettings:
        base = load_settings(Path(settings)) if settings else ProsodySettings()
        if not overrides:
            return base
        # Revalidate so overrides are coerced and clamped like any other input.
        return ProsodySettings.model_validate({**base.model_dump(), **overrides})

    # —————————————————— Commands ——————————————————

    def render(
        self,
        script: Path | str,
        glossary: Optional[Path | str] = None,
        language: str = "en",
        out: Optional[Path | str] = None,
        preview: bool = False,
        settings: Optional[Path | str] = None,
        **overrides: Any,
    ) -> str:
        """Compose the markup document for a script.

        Args:
            script: UTF-8 narration text.
            glossary: Optional glossary XML with phonetic transcriptions.
            language: Target language tag written to the document root.
            out: Output file; the document is returned instead when omitted.
            preview: Render only the first 500 characters.
            settings: Optional JSON file with ``ProsodySettings`` fields.
            **overrides: Individual ``ProsodySettings`` fields, e.g.
                ``--vendor=openai``.

        Returns:
            The output path when ``out`` is given, otherwise the document.

        Raises:
            FileNotFoundError: If the script, glossary, or settings file is missing.
            FileExistsError: If ``out`` exists and ``--force`` is not set.
        """
        content = self._read_script(script)
        terms = self._terms(glossary)
        prosody = self._settings(settings, overrides)
        logger.info(
            "render.start script={script} vendor={vendor} terms={terms}",
            script=script,
            vendor=prosody.vendor.value,
            terms=len(terms),
        )
        result = synthesize_document(content, terms, prosody, language, preview=preview)
        for warning in result.warnings:
            logger.warning("render.vendor_warning {warning}", warning=warning)

        if not out:
            logger.info("render.done chars={chars}", chars=len(result.markup_document))
            return result.markup_document

        out_path = self._resolve_output(out)
        out_path.write_text(result.markup_document, encoding="utf-8")
        logger.info(
            "render.done path={path} chars={chars}",
            path=out_path,
            chars=len(result.markup_document),
        )
        return str(out_path)

    def warnings(self, vendor: str, glossary: Optional[Path | str] = None) -> List[str]:
        """List features ``vendor`` ignores for the given glossary."""
        return get_warnings(vendor, has_any_transcription(self._terms(glossary)))

    def voices(self, vendor: str) -> List[str]:
        """List ``id: description`` entries of the vendor's voice catalogue."""
        return [
            f"{voice.id}: {voice.description}" for voice in voices_for_vendor(vendor)
        ]

    def prompt(
        self,
        script: Path | str,
        glossary: Optional[Path | str] = None,
        out: Optional[Path | str] = None,
    ) -> str:
        """Plain-text prompt with a pronunciation guide for vendors without markup."""
        text = pronunciation_prompt(self._read_script(script), self._terms(glossary))
        if not out:
            return text
        out_path = self._resolve_output(out)
        out_path.write_text(text, encoding="utf-8")
        logger.info("prompt.done path={path}", path=out_path)
        return str(out_path)


if __name__ == "__main__":
    fire.Fire(MarkupToolchain)
