from functools import lru_cache

from fastapi import Depends, Request

from labtrack.config import settings
from labtrack.models.biomarker import BiomarkerCatalog
from labtrack.seed.biomarker_seed import default_catalog
from labtrack.services.history import PatientStore
from labtrack.services.pipeline import ReportPipeline
from labtrack.services.remote_extractor import RemoteExtractorClient


@lru_cache(maxsize=1)
def get_catalog() -> BiomarkerCatalog:
    return default_catalog()


def get_patient_store(request: Request) -> PatientStore:
    return request.app.state.patient_store


def get_pipeline(
    store: PatientStore = Depends(get_patient_store),
    catalog: BiomarkerCatalog = Depends(get_catalog),
) -> ReportPipeline:
    remote_client = None
    if settings.remote_extractor_url:
        remote_client = RemoteExtractorClient(
            settings.remote_extractor_url,
            catalog,
            timeout=settings.remote_extractor_timeout_seconds,
            threshold=settings.catalog_fuzzy_threshold,
        )
    return ReportPipeline(store, catalog, config=settings, remote_client=remote_client)
