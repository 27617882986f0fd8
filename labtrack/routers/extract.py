import logging

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from labtrack.config import settings
from labtrack.schemas.extraction import ExtractionFailed
from labtrack.services.extractor import extract_pdf_text

router = APIRouter(prefix="/api", tags=["extract"])
logger = logging.getLogger(__name__)


@router.post("/extract")
async def extract(file: UploadFile | None = File(default=None)):
    """Text layer only: ``{text, method}`` on success, ``{error, details}`` otherwise."""
    if file is None:
        return JSONResponse(status_code=400, content={"error": "No file uploaded", "details": "Form field 'file' is required"})

    file_bytes = await file.read()
    result = extract_pdf_text(file_bytes, min_text_length=settings.ocr_min_text_length)
    if isinstance(result, ExtractionFailed):
        logger.error("PDF extraction failed for %s: %s", file.filename, result.reason)
        return JSONResponse(status_code=500, content={"error": "Extraction failed", "details": result.reason})
    return {"text": result.text, "method": result.method}
