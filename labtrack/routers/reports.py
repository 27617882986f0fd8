from fastapi import APIRouter, Depends, File, UploadFile

from labtrack.routers.deps import get_patient_store, get_pipeline
from labtrack.services.history import PatientStore
from labtrack.services.pipeline import ReportPipeline

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.post("/upload")
async def upload_report(
    file: UploadFile | None = File(default=None),
    pipeline: ReportPipeline = Depends(get_pipeline),
):
    if file is None:
        outcome = pipeline.process(None, None)
    else:
        file_bytes = await file.read()
        outcome = pipeline.process(file_bytes, file.filename, file.content_type)
    return {
        "statusCode": 200,
        "message": "Report processed successfully",
        "data": outcome.model_dump(by_alias=True, mode="json"),
    }


@router.get("/status")
def upload_status(store: PatientStore = Depends(get_patient_store)):
    return {
        "statusCode": 200,
        "message": "Success",
        "data": store.upload_state.model_dump(by_alias=True, mode="json"),
    }


@router.get("")
def list_reports(store: PatientStore = Depends(get_patient_store)):
    reports = list(store.record.source_reports)
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {
            "reports": reports,
            "total": len(reports),
            "lastUpdated": store.record.info.last_updated.isoformat(),
        },
    }
