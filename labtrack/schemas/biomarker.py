from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Status(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    CRITICAL = "Critical"


OUT_OF_RANGE_STATUSES = frozenset({Status.LOW, Status.HIGH, Status.CRITICAL})


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ReferenceRange(CamelModel):
    """Display bounds for a biomarker, as printed on a report or taken from the catalog."""

    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    optimal: float | None = None


class BiomarkerValue(CamelModel):
    """A single recorded observation. Never edited in place."""

    model_config = ConfigDict(frozen=True)

    value: float
    unit: str = ""
    status: Status = Status.NORMAL
    trend: Trend = Trend.STABLE
    date: str
    reference_range: ReferenceRange | None = None


class Observation(CamelModel):
    """A newly recognized, classified value waiting to be merged into a record."""

    model_config = ConfigDict(frozen=True)

    value: float
    unit: str = ""
    status: Status = Status.NORMAL
    date: str
    reference_range: ReferenceRange | None = None


class BiomarkerRecord(CamelModel):
    """Current value plus date-ordered history for one catalog biomarker."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str = ""
    current_value: BiomarkerValue
    history: tuple[BiomarkerValue, ...] = ()


class SummaryStats(CamelModel):
    total: int = 0
    normal: int = 0
    out_of_range: int = 0
    improving: int = 0


class ChartPoint(CamelModel):
    date: str
    value: float
    status: Status


class ChartSeries(CamelModel):
    name: str
    category: str
    data: list[ChartPoint]
    reference_range: ReferenceRange | None
    unit: str
