"""
ingestion.py — Turn an uploaded tender file into plain text.

The summarizer only ever sees a string, so this module's whole job is to
get the best text it can out of PDFs, plain-text exports, DOCX files and
photographed notices.

PDFs are handled page by page. Tenders often mix typed pages with
scanned annexures, so a page that yields almost no text from pdfplumber
is rendered and OCR'd on its own rather than OCR'ing the whole file.
An OCR failure costs that page its text and nothing more: a summary of
the remaining pages is still more useful than an error.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List
from zipfile import BadZipFile

import pdfplumber
from pdfminer.psparser import PSException
from pdfplumber.utils.exceptions import PdfminerException
from PIL import Image, ImageEnhance, ImageFilter

from tender_summary.config import config

logger = logging.getLogger(__name__)


def load_document(file_path: str) -> str:
    """
    Load a supported document and return its text.

    Raises:
        FileNotFoundError: The path does not exist.
        ValueError: Unsupported extension, file over the size limit, or a
            PDF/DOCX the parser cannot open.
    """
    path = Path(file_path)
    _validate_file(path)

    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return _load_pdf(path)
    elif suffix == ".txt":
        return _load_text(path)
    elif suffix == ".docx":
        return _load_docx(path)
    elif suffix in (".jpg", ".jpeg", ".png"):
        return _load_image(path)
    else:
        raise ValueError(f"Unsupported format: {suffix}")


def _load_pdf(path: Path) -> str:
    """Every page's text followed by a newline, OCR'ing near-empty pages."""
    pages: List[str] = []
    ocr_pages = 0

    try:
        with pdfplumber.open(str(path)) as pdf:
            total_pages = len(pdf.pages)
            logger.info("Opening PDF: %s (%d pages)", path.name, total_pages)

            for idx, page in enumerate(pdf.pages, start=1):
                text = page.extract_text() or ""

                if len(text.strip()) < config.ocr.scanned_char_threshold:
                    logger.info(
                        "Page %d/%d: only %d chars, treating as scanned",
                        idx, total_pages, len(text.strip()),
                    )
                    text = _ocr_pdf_page(path, idx) or text
                    ocr_pages += 1

                pages.append(text + "\n")
    except (PSException, PdfminerException) as exc:
        # garbage bytes or a truncated upload
        raise ValueError(f"Could not read {path.name}: {exc}") from exc

    logger.info(
        "Loaded %s: %d pages (%d OCR), %d chars",
        path.name, len(pages), ocr_pages, sum(len(p) for p in pages),
    )
    return "".join(pages)


def _ocr_pdf_page(pdf_path: Path, page_number: int) -> str:
    """Render one page (pdf2image keeps every rendered page in memory)."""
    try:
        from pdf2image import convert_from_path

        images = convert_from_path(
            str(pdf_path),
            dpi=config.ocr.dpi,
            first_page=page_number,
            last_page=page_number,
        )
    except ImportError:
        logger.error(
            "pdf2image not installed; cannot OCR scanned pages. "
            "Install with: pip install pdf2image (also needs poppler)"
        )
        return ""
    except Exception as exc:
        # poppler failures come through as assorted exception types
        logger.warning("Rendering failed for page %d: %s", page_number, exc)
        return ""

    if not images:
        logger.warning("pdf2image returned nothing for page %d", page_number)
        return ""
    return _ocr_image(_preprocess_image(images[0]))


def _load_text(path: Path) -> str:
    text = path.read_text(encoding="utf-8", errors="replace")
    logger.info("Loaded text file: %s (%d chars)", path.name, len(text))
    return text


def _load_docx(path: Path) -> str:
    """Paragraphs first, then table rows as ' | '-joined cells."""
    from docx import Document
    from docx.opc.exceptions import PackageNotFoundError

    try:
        doc = Document(str(path))
    except (PackageNotFoundError, BadZipFile) as exc:
        raise ValueError(f"Could not read {path.name}: {exc}") from exc
    parts = [para.text for para in doc.paragraphs if para.text.strip()]

    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    logger.info("Loaded DOCX: %s (%d text blocks)", path.name, len(parts))
    return "\n".join(parts)


def _load_image(path: Path) -> str:
    with Image.open(str(path)) as img:
        text = _ocr_image(_preprocess_image(img))
    logger.info("Loaded image: %s (%d chars via OCR)", path.name, len(text))
    return text


def _preprocess_image(img: Image.Image) -> Image.Image:
    """Grayscale, then contrast, then median denoise."""
    img = img.convert("L")

    if config.ocr.contrast_enhance:
        img = ImageEnhance.Contrast(img).enhance(2.0)

    if config.ocr.denoise:
        img = img.filter(ImageFilter.MedianFilter(size=3))

    return img


def _ocr_image(img: Image.Image) -> str:
    import pytesseract

    pytesseract.pytesseract.tesseract_cmd = config.ocr.tesseract_cmd

    try:
        return pytesseract.image_to_string(img, lang=config.ocr.lang).strip()
    except Exception as exc:
        # Missing binary, blank page, corrupt image data
        logger.error("Tesseract failed: %s", exc)
        return ""


def _validate_file(path: Path) -> None:
    """Fail fast on missing, oversized or unsupported files."""
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    size_mb = path.stat().st_size / (1024 * 1024)
    if size_mb > config.max_file_size_mb:
        raise ValueError(
            f"File too large ({size_mb:.1f} MB). Max: {config.max_file_size_mb} MB"
        )

    if path.suffix.lower() not in config.supported_formats:
        raise ValueError(
            f"Unsupported format '{path.suffix}'. "
            f"Supported: {', '.join(config.supported_formats)}"
        )
