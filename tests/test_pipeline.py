import pytest
from pydantic import ValidationError

from labtrack.config import Settings
from labtrack.errors import ExtractionError, InputError, NetworkError
from labtrack.schemas.biomarker import Status
from labtrack.schemas.extraction import ExtractionFailed, NeedsOcr, TextExtracted
from labtrack.schemas.lab_report import RecognitionResult, RecognizedBiomarker, RecognizedPatientInfo, UploadStatus
from labtrack.seed.biomarker_seed import build_seed_record
from labtrack.services.history import PatientStore
from labtrack.services.ocr import TextRecognizer
from labtrack.services.pipeline import ReportPipeline

NORMAL_VALUES = {
    "Total Cholesterol": (180,),
    "Triglycerides": (120,),
    "HDL Cholesterol": (50,),
    "LDL Cholesterol": (90,),
    "Vitamin D": (40,),
    "Vitamin B12": (400,),
    "Creatinine": (1.0,),
    "HbA1c": (5.2,),
    "Hemoglobin": (14.0,),
}


class StaticTextRecognizer(TextRecognizer):
    def __init__(self, text: str):
        self.text = text
        self.calls = []

    def recognize_text(self, file_bytes: bytes, file_name: str) -> str:
        self.calls.append(file_name)
        return self.text


class BrokenTextRecognizer(TextRecognizer):
    def recognize_text(self, file_bytes: bytes, file_name: str) -> str:
        raise RuntimeError("OCR provider unavailable")


class StaticRemoteClient:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def extract(self, file_bytes, file_name):
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture()
def normal_store(catalog, classifier):
    return PatientStore(build_seed_record(catalog, classifier, history=NORMAL_VALUES))


@pytest.fixture()
def extracted(monkeypatch):
    def install(result):
        monkeypatch.setattr("labtrack.services.pipeline.extract_pdf_text", lambda *args, **kwargs: result)

    return install


def _pipeline(store, catalog, **kwargs):
    kwargs.setdefault("config", Settings(ocr_provider="simulated"))
    return ReportPipeline(store, catalog, **kwargs)


def test_upload_updates_record_and_summary(normal_store, catalog, extracted):
    extracted(TextExtracted(text="Name: MR. RAVI KUMAR\nDate: 01-07-2025\nHDL 38 mg/dL\nLDL 145 mg/dL\n"))
    before = normal_store.record

    outcome = _pipeline(normal_store, catalog).process(b"%PDF-1.4", "july.pdf", "application/pdf")

    assert outcome.method == "pdfjs"
    assert outcome.merged == ["HDL Cholesterol", "LDL Cholesterol"]
    assert outcome.recognized["HDL Cholesterol"].status == Status.LOW
    assert outcome.recognized["LDL Cholesterol"].status == Status.HIGH
    assert outcome.summary.out_of_range == 2
    assert outcome.summary.total == 9

    record = normal_store.record
    assert record.biomarkers["HDL Cholesterol"].current_value.value == 38
    assert record.biomarkers["HDL Cholesterol"].current_value.date == "2025-07-01"
    assert len(record.biomarkers["HDL Cholesterol"].history) == 2
    assert record.biomarkers["Creatinine"] == before.biomarkers["Creatinine"]
    assert record.info.name == "MR. RAVI KUMAR"
    assert normal_store.upload_state.status == UploadStatus.SUCCESS


@pytest.mark.parametrize(
    ("file_bytes", "file_name", "content_type", "message"),
    [
        (None, None, None, "No file uploaded"),
        (b"%PDF", "", "application/pdf", "No file uploaded"),
        (b"hello", "notes.txt", "text/plain", "Please upload a PDF file"),
        (b"hello", "notes.txt", "application/octet-stream", "Please upload a PDF file"),
        (b"", "empty.pdf", "application/pdf", "Uploaded file is empty"),
    ],
)
def test_invalid_uploads_are_rejected(normal_store, catalog, file_bytes, file_name, content_type, message):
    before = normal_store.record
    with pytest.raises(InputError) as excinfo:
        _pipeline(normal_store, catalog).process(file_bytes, file_name, content_type)
    assert excinfo.value.message == message
    assert normal_store.record is before
    assert normal_store.upload_state.status == UploadStatus.ERROR


def test_oversized_upload_is_rejected(normal_store, catalog):
    pipeline = _pipeline(normal_store, catalog, config=Settings(max_upload_size_mb=1))
    with pytest.raises(InputError) as excinfo:
        pipeline.process(b"0" * (1024 * 1024 + 1), "big.pdf", "application/pdf")
    assert "1MB" in excinfo.value.message


def test_failed_extraction_leaves_store_untouched(normal_store, catalog, extracted):
    extracted(ExtractionFailed(reason="corrupt xref table"))
    before = normal_store.record
    with pytest.raises(ExtractionError) as excinfo:
        _pipeline(normal_store, catalog).process(b"%PDF-1.4", "broken.pdf", "application/pdf")
    assert excinfo.value.detail == "corrupt xref table"
    assert normal_store.record is before
    assert normal_store.upload_state.status == UploadStatus.ERROR
    assert normal_store.upload_state.message == "Could not read the uploaded report"


def test_scanned_report_goes_through_ocr(normal_store, catalog, extracted):
    extracted(NeedsOcr())
    ocr = StaticTextRecognizer("Vitamin D 22 ng/mL\nCreatinine 1.5 mg/dL")
    outcome = _pipeline(normal_store, catalog, text_recognizer=ocr).process(b"%PDF-1.4", "scan.pdf")

    assert ocr.calls == ["scan.pdf"]
    assert outcome.method == "ocr-needed"
    assert outcome.recognized["Vitamin D"].status == Status.LOW
    assert outcome.recognized["Creatinine"].status == Status.HIGH
    assert "HDL Cholesterol" in outcome.skipped


def test_ocr_failure_is_an_extraction_error(normal_store, catalog, extracted):
    extracted(NeedsOcr())
    pipeline = _pipeline(normal_store, catalog, text_recognizer=BrokenTextRecognizer())
    with pytest.raises(ExtractionError) as excinfo:
        pipeline.process(b"%PDF-1.4", "scan.pdf")
    assert "unavailable" in excinfo.value.detail


def test_remote_status_is_kept_when_supplied(normal_store, catalog):
    result = RecognitionResult(
        patient_info=RecognizedPatientInfo(report_date="2025-07-02"),
        biomarkers={
            "Creatinine": RecognizedBiomarker(value=4.8, unit="mg/dL", status=Status.CRITICAL),
            "LDL Cholesterol": RecognizedBiomarker(value=145, unit="mg/dL"),
        },
    )
    pipeline = _pipeline(normal_store, catalog, remote_client=StaticRemoteClient(result=result))
    outcome = pipeline.process(b"%PDF-1.4", "remote.pdf", "application/pdf")

    assert outcome.method == "remote"
    assert outcome.recognized["Creatinine"].status == Status.CRITICAL
    assert outcome.recognized["LDL Cholesterol"].status == Status.HIGH
    assert normal_store.record.biomarkers["Creatinine"].current_value.status == Status.CRITICAL


def test_remote_failure_propagates(normal_store, catalog):
    client = StaticRemoteClient(error=NetworkError("Extraction failed. Please try again.", detail="HTTP 503"))
    before = normal_store.record
    with pytest.raises(NetworkError):
        _pipeline(normal_store, catalog, remote_client=client).process(b"%PDF-1.4", "remote.pdf")
    assert normal_store.record is before
    assert normal_store.upload_state.message == "Extraction failed. Please try again."


def test_display_range_survives_upload_without_printed_range(store, catalog, extracted):
    before = store.record.biomarkers
    extracted(TextExtracted(text="Total Cholesterol 190 mg/dL\nHbA1c 5.4 %\nHDL 45 mg/dL"))
    _pipeline(store, catalog).process(b"%PDF-1.4", "no-ranges.pdf", "application/pdf")

    for name in ("Total Cholesterol", "HbA1c", "HDL Cholesterol"):
        current = store.record.biomarkers[name].current_value
        assert current.reference_range == before[name].current_value.reference_range
        assert current.reference_range.optimal is not None
    assert store.record.biomarkers["Total Cholesterol"].current_value.reference_range.min == 125


def test_history_limit_below_one_is_rejected():
    with pytest.raises(ValidationError):
        Settings(history_limit=0)


def test_merge_failure_marks_upload_as_error(normal_store, catalog, extracted, monkeypatch):
    def failing_merge(*args, **kwargs):
        raise ValueError("history_limit must be at least 1")

    monkeypatch.setattr("labtrack.services.pipeline.merge_recognition", failing_merge)
    extracted(TextExtracted(text="HDL 38 mg/dL"))
    before = normal_store.record
    with pytest.raises(ValueError):
        _pipeline(normal_store, catalog).process(b"%PDF-1.4", "july.pdf", "application/pdf")
    assert normal_store.record is before
    assert normal_store.upload_state.status == UploadStatus.ERROR
    assert normal_store.upload_state.message == "Extraction failed. Please try again."
