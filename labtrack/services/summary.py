from collections.abc import Mapping

from labtrack.models.biomarker import BiomarkerCatalog, Polarity
from labtrack.schemas.biomarker import (
    OUT_OF_RANGE_STATUSES,
    BiomarkerRecord,
    ChartPoint,
    ChartSeries,
    Status,
    SummaryStats,
)
from labtrack.schemas.patient import PatientRecord


def is_improving(record: BiomarkerRecord, polarity: Polarity) -> bool:
    if len(record.history) < 2:
        return False
    latest = record.history[-1].value
    previous = record.history[-2].value
    if polarity is Polarity.HIGHER_IS_BETTER:
        return latest > previous
    if polarity is Polarity.LOWER_IS_BETTER:
        return latest < previous
    return False


def compute_summary(biomarkers: Mapping[str, BiomarkerRecord], catalog: BiomarkerCatalog) -> SummaryStats:
    """Counts over the current biomarker map. Recomputed on every call, never cached."""
    statuses = [record.current_value.status for record in biomarkers.values()]
    return SummaryStats(
        total=len(biomarkers),
        normal=sum(1 for status in statuses if status is Status.NORMAL),
        out_of_range=sum(1 for status in statuses if status in OUT_OF_RANGE_STATUSES),
        improving=sum(1 for name, record in biomarkers.items() if is_improving(record, catalog.polarity(name))),
    )


def build_chart_series(record: PatientRecord, category: str | None = None) -> list[ChartSeries]:
    series = []
    for name, biomarker in record.biomarkers.items():
        if category and biomarker.category != category:
            continue
        series.append(
            ChartSeries(
                name=name,
                category=biomarker.category,
                data=[ChartPoint(date=item.date, value=item.value, status=item.status) for item in biomarker.history],
                reference_range=biomarker.current_value.reference_range,
                unit=biomarker.current_value.unit,
            )
        )
    return series
