from datetime import date, datetime
from enum import Enum

from pydantic import ConfigDict, Field

from labtrack.schemas.biomarker import BiomarkerRecord, CamelModel


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    UNKNOWN = "UNKNOWN"


class PatientInfo(CamelModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    age: int | None = None
    gender: Gender = Gender.UNKNOWN
    id: str = ""
    report_date: date | None = None
    last_updated: datetime


class PatientRecord(CamelModel):
    """Aggregate root: one patient's info plus the per-biomarker history, keyed by catalog name."""

    model_config = ConfigDict(frozen=True)

    info: PatientInfo
    biomarkers: dict[str, BiomarkerRecord]
    source_reports: tuple[str, ...] = Field(default=())
