import re
from datetime import date, datetime, timezone

from labtrack.schemas.biomarker import Status, SummaryStats
from labtrack.schemas.patient import PatientInfo, PatientRecord

RISK_STATUSES = (Status.HIGH, Status.LOW)


def build_export(record: PatientRecord, summary: SummaryStats, generated_at: datetime | None = None) -> dict:
    """Write-only snapshot of the patient record for download."""
    generated_at = generated_at or datetime.now(timezone.utc)
    biomarkers = record.biomarkers
    return {
        "patient": record.info.model_dump(by_alias=True, mode="json"),
        "biomarkers": {name: item.model_dump(by_alias=True, mode="json") for name, item in biomarkers.items()},
        "summary": summary.model_dump(by_alias=True),
        "reportMetadata": {
            "sourceReports": list(record.source_reports),
            "generatedAt": generated_at.isoformat(),
            "clinicalSummary": {
                "riskFactors": [
                    name for name, item in biomarkers.items() if item.current_value.status in RISK_STATUSES
                ],
                "improvements": [
                    name
                    for name, item in biomarkers.items()
                    if len(item.history) >= 2 and item.history[-1].value != item.history[-2].value
                ],
            },
        },
    }


def export_filename(info: PatientInfo, today: date | None = None) -> str:
    today = today or date.today()
    slug = re.sub(r"\s+", "-", info.name.strip()) or "patient"
    return f"labtrack-health-{slug}-{today.isoformat()}.json"
