from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from labtrack.models.biomarker import BiomarkerCatalog
from labtrack.routers.deps import get_catalog, get_patient_store
from labtrack.schemas.patient import PatientInfo
from labtrack.services.export import build_export, export_filename
from labtrack.services.history import PatientStore
from labtrack.services.summary import compute_summary

router = APIRouter(prefix="/api", tags=["patient"])


@router.get("/patient", response_model=PatientInfo)
def patient(store: PatientStore = Depends(get_patient_store)):
    return store.record.info


@router.get("/export")
def export(store: PatientStore = Depends(get_patient_store), catalog: BiomarkerCatalog = Depends(get_catalog)):
    record = store.record
    payload = build_export(record, compute_summary(record.biomarkers, catalog))
    return JSONResponse(
        content=payload,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(record.info)}"'},
    )
