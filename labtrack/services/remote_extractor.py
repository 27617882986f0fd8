import logging
import os

import requests
from pydantic import ValidationError

from labtrack.errors import NetworkError
from labtrack.models.biomarker import BiomarkerCatalog
from labtrack.schemas.lab_report import RecognitionResult
from labtrack.services.classifier import classify_many

logger = logging.getLogger(__name__)

USER_MESSAGE = "Extraction failed. Please try again."


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        for key in ("detail", "error", "message"):
            if payload.get(key):
                return str(payload[key])
    return f"HTTP {response.status_code}"


class RemoteExtractorClient:
    """Delegates extraction and recognition to an external HTTP service.

    Single attempt with an explicit timeout; failures surface as ``NetworkError``.
    """

    def __init__(self, base_url: str, catalog: BiomarkerCatalog, timeout: float = 60.0, threshold: int | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._catalog = catalog
        self._threshold = threshold

    def extract(self, file_bytes: bytes, file_name: str) -> RecognitionResult:
        url = f"{self.base_url}/extract"
        files = {"file": (os.path.basename(file_name), file_bytes, "application/pdf")}
        try:
            response = requests.post(url, files=files, timeout=self.timeout)
        except requests.RequestException as exc:
            raise NetworkError(USER_MESSAGE, detail=f"POST {url} failed: {exc}") from exc

        if not response.ok:
            raise NetworkError(USER_MESSAGE, detail=f"HTTP {response.status_code}: {_error_detail(response)}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkError(USER_MESSAGE, detail="Extraction service returned a non-JSON body") from exc
        try:
            result = RecognitionResult.model_validate(payload)
        except ValidationError as exc:
            raise NetworkError(USER_MESSAGE, detail=f"Unexpected extraction payload: {exc.error_count()} errors") from exc
        return self._resolve_names(result)

    def _resolve_names(self, result: RecognitionResult) -> RecognitionResult:
        matches = classify_many(result.biomarkers, self._catalog, threshold=self._threshold)
        biomarkers = {}
        for raw_name, item in result.biomarkers.items():
            name = matches[raw_name]
            if name is None:
                logger.info("Dropping biomarker outside the catalog: %s", raw_name)
                continue
            biomarkers.setdefault(name, item)
        return result.model_copy(update={"biomarkers": biomarkers})
