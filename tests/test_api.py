from labtrack.errors import error_envelope, error_name_for
from labtrack.schemas.extraction import TextExtracted

REPORT_TEXT = "Name: MR. MANJUNATH SWAMY\nAge/Gender: 54Y/M\nDate: 01-07-2025\nHDL 38 mg/dL\nLDL 145 mg/dL\n"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["service"] == "labtrack"


def test_extract_without_file(client):
    response = client.post("/api/extract", data={"other": "x"})
    assert response.status_code == 400
    assert response.json()["error"] == "No file uploaded"


def test_extract_garbage_bytes(client):
    response = client.post("/api/extract", files={"file": ("broken.pdf", b"not a pdf", "application/pdf")})
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Extraction failed"
    assert body["details"]


def test_upload_report_success(client, monkeypatch):
    monkeypatch.setattr(
        "labtrack.services.pipeline.extract_pdf_text", lambda *args, **kwargs: TextExtracted(text=REPORT_TEXT)
    )
    response = client.post("/api/reports/upload", files={"file": ("july.pdf", b"%PDF-1.4", "application/pdf")})
    assert response.status_code == 200
    body = response.json()
    assert body["statusCode"] == 200
    assert body["message"] == "Report processed successfully"
    data = body["data"]
    assert data["fileName"] == "july.pdf"
    assert data["method"] == "pdfjs"
    assert data["merged"] == ["HDL Cholesterol", "LDL Cholesterol"]
    assert data["recognized"]["LDL Cholesterol"]["status"] == "High"
    assert data["reportId"].startswith("RPT-")

    history = client.get("/api/biomarkers/HDL Cholesterol/history").json()
    assert history[-1]["value"] == 38
    assert history[-1]["date"] == "2025-07-01"

    status = client.get("/api/reports/status").json()["data"]
    assert status["status"] == "success"

    reports = client.get("/api/reports").json()["data"]
    assert reports["reports"][-1] == "MR. MANJUNATH SWAMY Health Report (01-07-2025)"
    assert reports["total"] == 3


def test_upload_rejects_non_pdf(client):
    response = client.post("/api/reports/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400
    body = response.json()
    assert body["statusCode"] == 400
    assert body["error"] == "BadRequest"
    assert body["message"] == "Please upload a PDF file"
    assert client.get("/api/reports/status").json()["data"]["status"] == "error"


def test_upload_undecodable_pdf(client):
    response = client.post("/api/reports/upload", files={"file": ("broken.pdf", b"not a pdf", "application/pdf")})
    assert response.status_code == 422
    assert response.json()["error"] == "ExtractionError"


def test_biomarkers_and_summary(client, catalog):
    biomarkers = client.get("/api/biomarkers").json()
    assert set(biomarkers) == set(catalog.names())
    hdl = biomarkers["HDL Cholesterol"]
    assert hdl["currentValue"]["status"] == "Low"
    assert hdl["currentValue"]["referenceRange"]["min"] == 40

    summary = client.get("/api/biomarkers/summary").json()
    assert summary["total"] == len(catalog)
    assert summary["normal"] + summary["outOfRange"] == summary["total"]
    assert summary["improving"] == 7


def test_categories(client, catalog):
    categories = client.get("/api/biomarkers/categories").json()
    assert sum(item["total"] for item in categories) == len(catalog)
    lipid = next(item for item in categories if item["category"] == "Lipid Profile")
    assert lipid["total"] == 4


def test_history_for_unknown_biomarker(client):
    response = client.get("/api/biomarkers/Ferritin/history")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


def test_chart_series(client):
    series = client.get("/api/biomarkers/chart-series", params={"category": "Lipid Profile"}).json()
    assert [item["name"] for item in series] == ["Total Cholesterol", "Triglycerides", "HDL Cholesterol", "LDL Cholesterol"]
    assert [point["value"] for point in series[0]["data"]] == [218, 205, 192]


def test_trends_overview(client):
    overview = client.get("/api/trends/overview").json()
    assert overview
    deltas = [abs(item["deltaPercent"]) for item in overview]
    assert deltas == sorted(deltas, reverse=True)
    vitamin_d = next(item for item in overview if item["biomarker"] == "Vitamin D")
    assert vitamin_d["direction"] == "up"
    assert vitamin_d["improving"] is True
    assert vitamin_d["latestDate"] == "2025-06-16"


def test_patient_and_export(client):
    patient = client.get("/api/patient").json()
    assert patient["name"] == "MR. MANJUNATH SWAMY"
    assert patient["gender"] == "MALE"

    response = client.get("/api/export")
    assert response.status_code == 200
    assert response.headers["content-disposition"].startswith('attachment; filename="labtrack-health-MR.-MANJUNATH-SWAMY-')
    body = response.json()
    assert body["patient"]["id"] == "ET-250616"
    assert "HDL Cholesterol" in body["reportMetadata"]["clinicalSummary"]["riskFactors"]
    assert "HDL Cholesterol" not in body["reportMetadata"]["clinicalSummary"]["improvements"]
    assert len(body["reportMetadata"]["sourceReports"]) == 2


def test_error_envelope_names():
    assert error_envelope(404, "Unknown biomarker: Ferritin") == {
        "statusCode": 404,
        "message": "Unknown biomarker: Ferritin",
        "error": "NotFound",
    }
    assert error_name_for(503) == "InternalServerError"
    assert error_name_for(409) == "HTTPError"
    assert error_envelope(502, "Extraction failed. Please try again.", "NetworkError")["error"] == "NetworkError"
