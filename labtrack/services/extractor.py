import io
import logging

import pdfplumber

from labtrack.schemas.extraction import ExtractionFailed, ExtractionResult, NeedsOcr, TextExtracted

logger = logging.getLogger(__name__)

OCR_MIN_TEXT_LENGTH = 100


def _page_text(page) -> str:
    # use_text_flow keeps fragments in content-stream order instead of re-sorting by position.
    words = page.extract_words(use_text_flow=True)
    return " ".join(word["text"] for word in words)


def extract_pdf_text(file_bytes: bytes, min_text_length: int = OCR_MIN_TEXT_LENGTH) -> ExtractionResult:
    """Pull the text layer out of a PDF, page by page.

    A text layer of ``min_text_length`` characters or fewer (after trimming)
    is treated as an image-only document and reported as ``NeedsOcr``.
    """
    try:
        with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
            page_count = len(pdf.pages)
            if page_count == 0:
                return ExtractionFailed(reason="Document has no pages")
            text = "".join(_page_text(page) + "\n" for page in pdf.pages)
    except Exception as exc:
        logger.warning("PDF extraction error: %s", exc)
        return ExtractionFailed(reason=f"Unable to read PDF: {exc}" if str(exc) else "Unable to read PDF")

    if len(text.strip()) <= min_text_length:
        logger.info("Text layer too thin (%d chars over %d pages), OCR needed", len(text.strip()), page_count)
        return NeedsOcr()
    logger.info("Extracted %d chars from %d pages", len(text), page_count)
    return TextExtracted(text=text)
