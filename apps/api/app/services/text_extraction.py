"""
Plain-text extraction from uploaded RFP files.

Supports PDF (pypdf), Word documents (python-docx) and plain text.
No OCR and no layout reconstruction: callers get the raw text or an error.
"""

import io
import logging

from docx import Document as DocxDocument
from pypdf import PdfReader

from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
TEXT_MIME = "text/plain"

SUPPORTED_MIME_TYPES = (PDF_MIME, DOCX_MIME, DOC_MIME, TEXT_MIME)


class UnsupportedFileTypeError(ValidationError):
    """The MIME type has no extractor."""


class ExtractionFailedError(ValidationError):
    """The parser raised while reading the file."""


def _extract_pdf(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    parts = []
    for page in reader.pages:
        page_text = page.extract_text()
        if page_text:
            parts.append(page_text)
    return "\n".join(parts)


def _extract_docx(content: bytes) -> str:
    document = DocxDocument(io.BytesIO(content))
    parts = [paragraph.text for paragraph in document.paragraphs if paragraph.text]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def _extract_plain(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


_EXTRACTORS = {
    PDF_MIME: _extract_pdf,
    DOCX_MIME: _extract_docx,
    DOC_MIME: _extract_docx,
    TEXT_MIME: _extract_plain,
}


def extract_text(content: bytes, mime_type: str) -> str:
    """
    Convert an uploaded file to plain text.

    Raises:
        UnsupportedFileTypeError: mime_type is not PDF, Word or plain text
        ExtractionFailedError: the parser failed on the bytes
    """
    extractor = _EXTRACTORS.get(mime_type)
    if extractor is None:
        raise UnsupportedFileTypeError(f"Unsupported file type: {mime_type}")
    try:
        text = extractor(content)
    except Exception as e:
        logger.warning("Text extraction failed for %s: %s", mime_type, e)
        raise ExtractionFailedError(f"Failed to extract text from document: {e}") from e
    logger.info("Extracted %d chars from %s", len(text), mime_type)
    return text
