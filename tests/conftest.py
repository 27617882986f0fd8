from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from labtrack.main import app
from labtrack.routers.deps import get_patient_store
from labtrack.seed.biomarker_seed import build_seed_record, default_catalog
from labtrack.services.classifier import StatusClassifier
from labtrack.services.history import PatientStore


@pytest.fixture()
def catalog():
    return default_catalog()


@pytest.fixture()
def classifier(catalog):
    return StatusClassifier(catalog)


@pytest.fixture()
def seed_record(catalog, classifier):
    return build_seed_record(catalog, classifier)


@pytest.fixture()
def store(seed_record) -> PatientStore:
    return PatientStore(seed_record)


@pytest.fixture()
def client(store) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_patient_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
