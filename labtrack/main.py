import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from labtrack.config import settings
from labtrack.errors import PipelineError, error_envelope
from labtrack.routers import biomarkers, extract, patient, reports, trends
from labtrack.routers.deps import get_catalog
from labtrack.seed.biomarker_seed import build_seed_record
from labtrack.services.classifier import StatusClassifier
from labtrack.services.history import PatientStore

logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    catalog = get_catalog()
    app.state.patient_store = PatientStore(build_seed_record(catalog, StatusClassifier(catalog)))
    logger.info("Seeded patient record with %d biomarkers (env=%s)", len(catalog), settings.app_env)
    yield


app = FastAPI(title="LabTrack Biomarker API", version="0.1.0", lifespan=lifespan)

origins = [item.strip() for item in settings.allowed_origins.split(",") if item.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"statusCode": 200, "message": "Success", "data": {"status": "ok", "service": "labtrack"}}


@app.get("/health")
def health():
    return {"status": "ok", "service": "labtrack", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.exception_handler(PipelineError)
async def pipeline_error_handler(_: Request, exc: PipelineError):
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.status_code, exc.message, exc.error_name))


@app.exception_handler(HTTPException)
async def http_error_handler(_: Request, exc: HTTPException):
    message = str(exc.detail) if exc.detail else "Request failed"
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.status_code, message))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    body = error_envelope(422, "Invalid request payload", details={"errors": exc.errors()})
    return JSONResponse(status_code=422, content=body)


@app.exception_handler(Exception)
async def unexpected_error_handler(_: Request, exc: Exception):
    # Raw detail goes to the log only.
    logger.exception("Unhandled server error: %s", exc)
    return JSONResponse(status_code=500, content=error_envelope(500, "An unexpected error occurred"))


for module in (extract, reports, biomarkers, trends, patient):
    app.include_router(module.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("labtrack.main:app", host=settings.app_host, port=settings.app_port, reload=settings.app_env == "dev")
