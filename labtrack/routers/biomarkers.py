from collections import defaultdict

from fastapi import APIRouter, Depends, HTTPException, Query

from labtrack.models.biomarker import BiomarkerCatalog
from labtrack.routers.deps import get_catalog, get_patient_store
from labtrack.schemas.biomarker import OUT_OF_RANGE_STATUSES, BiomarkerRecord, BiomarkerValue, ChartSeries, SummaryStats
from labtrack.services.history import PatientStore
from labtrack.services.summary import build_chart_series, compute_summary

router = APIRouter(prefix="/api/biomarkers", tags=["biomarkers"])


@router.get("", response_model=dict[str, BiomarkerRecord])
def biomarkers(store: PatientStore = Depends(get_patient_store)):
    return store.record.biomarkers


@router.get("/summary", response_model=SummaryStats)
def summary(store: PatientStore = Depends(get_patient_store), catalog: BiomarkerCatalog = Depends(get_catalog)):
    return compute_summary(store.record.biomarkers, catalog)


@router.get("/categories")
def categories(store: PatientStore = Depends(get_patient_store)):
    grouped: dict[str, dict[str, int]] = defaultdict(lambda: {"total": 0, "outOfRange": 0, "normal": 0})
    for record in store.record.biomarkers.values():
        counts = grouped[record.category or "Other"]
        counts["total"] += 1
        if record.current_value.status in OUT_OF_RANGE_STATUSES:
            counts["outOfRange"] += 1
        else:
            counts["normal"] += 1

    return [{"category": category, **counts} for category, counts in sorted(grouped.items(), key=lambda kv: kv[0])]


@router.get("/chart-series", response_model=list[ChartSeries])
def chart_series(
    category: str | None = Query(default=None),
    store: PatientStore = Depends(get_patient_store),
):
    return build_chart_series(store.record, category=category)


@router.get("/{name}/history", response_model=list[BiomarkerValue])
def history(name: str, store: PatientStore = Depends(get_patient_store)):
    record = store.record.biomarkers.get(name)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Unknown biomarker: {name}")
    return list(record.history)
