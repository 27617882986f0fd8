from fastapi import APIRouter, Depends

from labtrack.models.biomarker import BiomarkerCatalog
from labtrack.routers.deps import get_catalog, get_patient_store
from labtrack.services.history import PatientStore
from labtrack.services.summary import is_improving
from labtrack.services.trend_analyzer import compute_delta, direction

router = APIRouter(prefix="/api/trends", tags=["trends"])


@router.get("/overview")
def overview(store: PatientStore = Depends(get_patient_store), catalog: BiomarkerCatalog = Depends(get_catalog)):
    output = []
    for name, record in store.record.biomarkers.items():
        if len(record.history) < 2:
            continue
        prev = record.history[-2]
        curr = record.history[-1]
        delta = compute_delta(prev.value, curr.value)
        if delta is None:
            continue
        output.append({
            "biomarker": name,
            "category": record.category,
            "previous": prev.value,
            "current": curr.value,
            "deltaPercent": round(delta, 2),
            "direction": direction(prev.value, curr.value).value,
            "improving": is_improving(record, catalog.polarity(name)),
            "latestStatus": curr.status.value,
            "previousDate": prev.date,
            "latestDate": curr.date,
        })

    output.sort(key=lambda x: abs(x["deltaPercent"]), reverse=True)
    return output
