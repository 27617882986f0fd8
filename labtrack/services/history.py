import logging
import re
import threading
from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import NamedTuple

from labtrack.schemas.biomarker import BiomarkerRecord, BiomarkerValue, Observation, ReferenceRange, Trend
from labtrack.schemas.lab_report import RecognitionResult, RecognizedPatientInfo, UploadState, UploadStatus
from labtrack.schemas.patient import Gender, PatientInfo, PatientRecord
from labtrack.services.trend_analyzer import direction

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 6

_RANGE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\s*$")
_UPPER_PATTERN = re.compile(r"^\s*<=?\s*(\d+(?:\.\d+)?)\s*$")
_LOWER_PATTERN = re.compile(r"^\s*>=?\s*(\d+(?:\.\d+)?)\s*$")

_GENDERS = {"M": Gender.MALE, "F": Gender.FEMALE}


class MergeResult(NamedTuple):
    record: PatientRecord
    merged: list[str]
    skipped: list[str]


def _safe_date(value: str | None) -> date | None:
    if not value:
        return None
    for fmt in ("%d-%m-%Y", "%Y-%m-%d", "%d-%m-%y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_reference_range(text: str | None, previous: ReferenceRange | None = None) -> ReferenceRange | None:
    """Turn a printed range ("40-60", "<200", ">30") into display bounds.

    Keeps ``previous`` (and its optimal value) when the printed bounds are the same.
    """
    if not text:
        return None
    between = _RANGE_PATTERN.match(text)
    upper = _UPPER_PATTERN.match(text)
    lower = _LOWER_PATTERN.match(text)
    if between:
        parsed = ReferenceRange(min=float(between.group(1)), max=float(between.group(2)))
    elif upper:
        parsed = ReferenceRange(min=0.0, max=float(upper.group(1)))
    elif lower:
        low = float(lower.group(1))
        high = previous.max if previous and previous.max > low else low * 2
        parsed = ReferenceRange(min=low, max=high)
    else:
        return None
    if previous and (previous.min, previous.max) == (parsed.min, parsed.max):
        return previous
    return parsed


def merge_observation(
    record: BiomarkerRecord,
    observation: Observation,
    *,
    history_limit: int = HISTORY_LIMIT,
    overwrite_missing_fields: bool = False,
    derive_trend: bool = False,
) -> BiomarkerRecord:
    """Record ``observation`` as the new current value and append it to the bounded history.

    Eviction is positional: the oldest entries by position are dropped first.
    With ``overwrite_missing_fields`` a blank unit or missing reference range
    stays blank; otherwise those fields fall back to the prior current value.
    """
    if history_limit < 1:
        raise ValueError("history_limit must be at least 1")

    previous = record.current_value
    unit = observation.unit
    reference_range = observation.reference_range
    if not overwrite_missing_fields:
        unit = unit or previous.unit
        reference_range = reference_range or previous.reference_range

    new_value = BiomarkerValue(
        value=observation.value,
        unit=unit,
        status=observation.status,
        trend=direction(previous.value, observation.value) if derive_trend else Trend.STABLE,
        date=observation.date,
        reference_range=reference_range,
    )
    kept = record.history[-(history_limit - 1):] if history_limit > 1 else ()
    return record.model_copy(update={"current_value": new_value, "history": (*kept, new_value)})


def merge_patient_info(info: PatientInfo, recognized: RecognizedPatientInfo, now: datetime) -> PatientInfo:
    updates: dict = {"last_updated": now}
    if recognized.name:
        updates["name"] = recognized.name
    if recognized.age.isdigit():
        updates["age"] = int(recognized.age)
    gender = _GENDERS.get(recognized.gender.strip().upper()[:1])
    if gender:
        updates["gender"] = gender
    if recognized.id:
        updates["id"] = recognized.id
    report_date = _safe_date(recognized.report_date)
    if report_date:
        updates["report_date"] = report_date
    return info.model_copy(update=updates)


def merge_recognition(
    record: PatientRecord,
    recognition: RecognitionResult,
    *,
    history_limit: int = HISTORY_LIMIT,
    overwrite_missing_fields: bool = False,
    derive_trend: bool = False,
    now: datetime | None = None,
) -> MergeResult:
    """Fold one recognized report into the patient record.

    Names outside the record's catalog and biomarkers without a value are skipped.
    """
    now = now or datetime.now(timezone.utc)
    observed_on = _safe_date(recognition.patient_info.report_date) or now.date()

    biomarkers = dict(record.biomarkers)
    merged: list[str] = []
    skipped: list[str] = []
    for name, item in recognition.biomarkers.items():
        existing = biomarkers.get(name)
        if existing is None or item.value is None:
            skipped.append(name)
            continue
        observation = Observation(
            value=item.value,
            unit=item.unit,
            status=item.status,
            date=observed_on.isoformat(),
            reference_range=parse_reference_range(item.reference_range, existing.current_value.reference_range),
        )
        biomarkers[name] = merge_observation(
            existing,
            observation,
            history_limit=history_limit,
            overwrite_missing_fields=overwrite_missing_fields,
            derive_trend=derive_trend,
        )
        merged.append(name)

    info = merge_patient_info(record.info, recognition.patient_info, now)
    source = f"{info.name or 'Unknown patient'} Health Report ({observed_on.strftime('%d-%m-%Y')})"
    logger.info("Merged %d biomarkers for %s, skipped %d", len(merged), info.id or "patient", len(skipped))
    updated = record.model_copy(
        update={"info": info, "biomarkers": biomarkers, "source_reports": (*record.source_reports, source)}
    )
    return MergeResult(record=updated, merged=merged, skipped=skipped)


class PatientStore:
    """In-memory holder of the session's patient record.

    Merges are serialized so concurrent uploads cannot overwrite each other.
    """

    def __init__(self, record: PatientRecord):
        self._record = record
        self._lock = threading.Lock()
        self._upload_state = UploadState()

    @property
    def record(self) -> PatientRecord:
        return self._record

    @property
    def upload_state(self) -> UploadState:
        return self._upload_state

    def set_upload_state(self, status: UploadStatus, message: str = "") -> None:
        self._upload_state = UploadState(status=status, message=message, updated_at=datetime.now(timezone.utc))

    def apply(self, merge: Callable[[PatientRecord], MergeResult]) -> MergeResult:
        with self._lock:
            result = merge(self._record)
            self._record = result.record
            return result
