import logging
import os

from labtrack.config import Settings, settings as default_settings
from labtrack.errors import ExtractionError, InputError, PipelineError
from labtrack.models.biomarker import BiomarkerCatalog
from labtrack.schemas.extraction import ExtractionFailed, NeedsOcr
from labtrack.schemas.lab_report import RecognitionResult, UploadOutcome, UploadStatus
from labtrack.services.classifier import StatusClassifier
from labtrack.services.extractor import extract_pdf_text
from labtrack.services.history import PatientStore, merge_recognition
from labtrack.services.ocr import TextRecognizer, get_text_recognizer
from labtrack.services.parser import FieldRecognizer
from labtrack.services.remote_extractor import RemoteExtractorClient
from labtrack.services.summary import compute_summary

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf", "application/octet-stream"}
GENERIC_FAILURE = "Extraction failed. Please try again."


class ReportPipeline:
    """Upload -> extract -> recognize -> classify -> merge, for one patient store.

    The store is only touched after recognition fully succeeds.
    """

    def __init__(
        self,
        store: PatientStore,
        catalog: BiomarkerCatalog,
        *,
        config: Settings = default_settings,
        recognizer: FieldRecognizer | None = None,
        classifier: StatusClassifier | None = None,
        text_recognizer: TextRecognizer | None = None,
        remote_client: RemoteExtractorClient | None = None,
    ):
        self._store = store
        self._catalog = catalog
        self._config = config
        self._recognizer = recognizer or FieldRecognizer(catalog)
        self._classifier = classifier or StatusClassifier(catalog)
        self._text_recognizer = text_recognizer or get_text_recognizer(config)
        self._remote_client = remote_client

    def validate(self, file_bytes: bytes | None, file_name: str | None, content_type: str | None) -> None:
        if file_bytes is None or not file_name:
            raise InputError("No file uploaded")
        if content_type and content_type.split(";")[0].strip().lower() not in PDF_CONTENT_TYPES:
            raise InputError("Please upload a PDF file", detail=f"content type {content_type}")
        if not file_name.lower().endswith(".pdf") and content_type != "application/pdf":
            raise InputError("Please upload a PDF file", detail=f"file name {file_name}")
        if not file_bytes:
            raise InputError("Uploaded file is empty")
        max_size_bytes = self._config.max_upload_size_mb * 1024 * 1024
        if len(file_bytes) > max_size_bytes:
            raise InputError(f"File too large. Max size is {self._config.max_upload_size_mb}MB")

    def recognize(self, file_bytes: bytes, file_name: str) -> tuple[str, RecognitionResult]:
        if self._remote_client is not None:
            return "remote", self._remote_client.extract(file_bytes, file_name)

        extracted = extract_pdf_text(file_bytes, min_text_length=self._config.ocr_min_text_length)
        if isinstance(extracted, ExtractionFailed):
            raise ExtractionError("Could not read the uploaded report", detail=extracted.reason)
        if isinstance(extracted, NeedsOcr):
            try:
                text = self._text_recognizer.recognize_text(file_bytes, file_name)
            except RuntimeError as exc:
                raise ExtractionError("Could not read the uploaded report", detail=str(exc)) from exc
        else:
            text = extracted.text
        return extracted.method, self._recognizer.recognize(text, file_name)

    def classify(self, recognition: RecognitionResult) -> RecognitionResult:
        """Assign a status to every recognized value that did not arrive with one."""
        biomarkers = {}
        for name, item in recognition.biomarkers.items():
            if item.value is not None and "status" not in item.model_fields_set:
                item = item.model_copy(update={"status": self._classifier.classify(name, item.value)})
            biomarkers[name] = item
        return recognition.model_copy(update={"biomarkers": biomarkers})

    def process(self, file_bytes: bytes | None, file_name: str | None, content_type: str | None = None) -> UploadOutcome:
        self._store.set_upload_state(UploadStatus.UPLOADING, f"Processing {file_name or 'upload'}")
        try:
            self.validate(file_bytes, file_name, content_type)
            method, recognition = self.recognize(file_bytes, file_name)
            recognition = self.classify(recognition)
            result = self._store.apply(
                lambda record: merge_recognition(
                    record,
                    recognition,
                    history_limit=self._config.history_limit,
                    overwrite_missing_fields=self._config.overwrite_missing_fields,
                    derive_trend=self._config.derive_trend,
                )
            )
            summary = compute_summary(result.record.biomarkers, self._catalog)
        except PipelineError as exc:
            logger.warning("Upload of %s failed: %s (%s)", file_name, exc.message, exc.detail)
            self._store.set_upload_state(UploadStatus.ERROR, exc.message)
            raise
        except Exception:
            logger.exception("Unexpected failure while processing %s", file_name)
            self._store.set_upload_state(UploadStatus.ERROR, GENERIC_FAILURE)
            raise

        self._store.set_upload_state(UploadStatus.SUCCESS, "Report processed successfully")
        logger.info("Processed %s via %s: %d merged", file_name, method, len(result.merged))
        return UploadOutcome(
            report_id=result.record.info.id,
            file_name=os.path.basename(file_name),
            method=method,
            recognized={name: recognition.biomarkers[name] for name in result.merged},
            merged=result.merged,
            skipped=result.skipped,
            summary=summary,
        )
