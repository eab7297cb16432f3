"""Extract plain text from uploaded resume / job description files.

Supports TXT and Markdown (decoded as UTF-8), PDF (via pypdf, page by page)
and DOCX (via stdlib zipfile + xml). Dispatch uses the declared media type
first and falls back to the filename extension.
"""
from __future__ import annotations

import io
import mimetypes
import re
import zipfile
from pathlib import Path
from xml.etree import ElementTree

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from pm_match.errors import ExtractionError
from pm_match.log import get_logger

log = get_logger(__name__)

ACCEPTED_EXTENSIONS: tuple[str, ...] = (".txt", ".md", ".pdf", ".doc", ".docx")

PDF_TYPES = {"application/pdf"}
WORD_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
}

_W_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"


def _extension(filename: str) -> str:
    return Path(filename).suffix.lower()


def _label(filename: str) -> str:
    return _extension(filename).lstrip(".").upper()


def _kind(filename: str, media_type: str | None) -> str:
    media_type = (media_type or "").split(";")[0].strip().lower()
    if media_type in PDF_TYPES:
        return "pdf"
    if media_type in WORD_TYPES:
        return "word"
    if media_type.startswith("text/"):
        return "text"

    suffix = _extension(filename)
    if suffix == ".pdf":
        return "pdf"
    if suffix in (".docx", ".doc"):
        return "word"
    if suffix in (".txt", ".md"):
        return "text"
    return "unsupported"


# ── Text extraction ──────────────────────────────────────────────────────


def extract_text(data: bytes, filename: str, media_type: str | None = None) -> str:
    """Return plain text from the bytes of a TXT, MD, PDF or DOCX upload.

    Raises ExtractionError naming the file's extension on any failure.
    """
    kind = _kind(filename, media_type)
    log.info("Extracting text from %s (%s)", filename, kind)
    if kind == "unsupported":
        raise ExtractionError(_label(filename), "unsupported format")

    try:
        if kind == "text":
            text = _decode_text(data)
        elif kind == "pdf":
            text = _extract_pdf(data)
        else:
            text = _extract_docx(data)
    except (UnicodeDecodeError, PyPdfError, zipfile.BadZipFile, KeyError,
            ElementTree.ParseError, ValueError, OSError) as exc:
        log.warning("Extraction failed for %s: %s", filename, exc)
        raise ExtractionError(_label(filename), str(exc)) from exc

    log.info("Extracted %d characters from %s", len(text), filename)
    return text


def extract_file(path: Path) -> str:
    """Read *path* from disk and extract its text (used by the CLI)."""
    media_type, _ = mimetypes.guess_type(path.name)
    return extract_text(path.read_bytes(), path.name, media_type)


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8-sig")


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction merges words together.

    Detects the problem by checking if the space-to-character ratio is
    abnormally low, then applies heuristic space insertion.
    """
    if not text or len(text) < 50:
        return text
    space_ratio = text.count(" ") / len(text)
    if space_ratio > 0.08:
        return text

    log.debug("Low space ratio (%.2f%%) — applying spacing fix", space_ratio * 100)
    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages: list[str] = []
    for index in range(len(reader.pages)):
        raw = reader.pages[index].extract_text() or ""
        pages.append(_fix_spacing(raw))
    log.debug("Read %d PDF page(s)", len(pages))
    return "\n".join(pages)


def _extract_docx(data: bytes) -> str:
    """Convert the whole document body to raw text in one pass."""
    texts: list[str] = []
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        with zf.open("word/document.xml") as f:
            tree = ElementTree.parse(f)
            for para in tree.iter(f"{_W_NS}p"):
                parts = [node.text for node in para.iter(f"{_W_NS}t") if node.text]
                texts.append("".join(parts))
    return "\n".join(texts).strip("\n")
