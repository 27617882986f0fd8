from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from labtrack.schemas.biomarker import CamelModel, Status, SummaryStats


class RecognizedBiomarker(CamelModel):
    """A biomarker as read off the report text, before merge."""
    value: float | None = Field(default=None, description="Numeric result, None when the report does not carry it")
    unit: str = Field(default="", description="Unit of measurement")
    status: Status = Field(default=Status.NORMAL, description="Qualitative status, placeholder until classified")
    reference_range: str = Field(default="", description="Reference range as printed, e.g. '40-100'")

    @field_validator("value", mode="before")
    @classmethod
    def _blank_value_is_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("unit", "reference_range", mode="before")
    @classmethod
    def _none_is_blank(cls, value):
        return "" if value is None else value


class RecognizedPatientInfo(CamelModel):
    """Patient demographics as read off the report. Unmatched fields are empty strings."""
    name: str = Field(default="", description="Patient name")
    age: str = Field(default="", description="Age in years")
    gender: str = Field(default="", description="M or F")
    id: str = Field(default="", description="Report or patient identifier")
    report_date: str = Field(default="", description="Report date as printed")

    @field_validator("name", "age", "gender", "id", "report_date", mode="before")
    @classmethod
    def _stringify(cls, value):
        if value is None:
            return ""
        return str(value)


class RecognitionResult(CamelModel):
    patient_info: RecognizedPatientInfo
    biomarkers: dict[str, RecognizedBiomarker]
    raw_text: str = ""


class UploadStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


class UploadState(CamelModel):
    status: UploadStatus = UploadStatus.IDLE
    message: str = ""
    updated_at: datetime | None = None


class UploadOutcome(CamelModel):
    report_id: str
    file_name: str
    method: str
    recognized: dict[str, RecognizedBiomarker]
    merged: list[str]
    skipped: list[str]
    summary: SummaryStats
