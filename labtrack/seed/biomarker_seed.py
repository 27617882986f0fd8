from datetime import date, datetime, timezone

from labtrack.models.biomarker import BiomarkerCatalog, BiomarkerReference, Polarity
from labtrack.schemas.biomarker import BiomarkerRecord, BiomarkerValue, ReferenceRange
from labtrack.schemas.patient import Gender, PatientInfo, PatientRecord
from labtrack.services.trend_analyzer import direction


BIOMARKERS = [
    {
        "name": "Total Cholesterol", "category": "Lipid Profile", "unit": "mg/dL",
        "low": None, "high": 200, "polarity": Polarity.LOWER_IS_BETTER,
        "label": r"Total\s+Cholesterol", "aliases": ["CHOLESTEROL", "TOTAL CHOLESTEROL", "TC"],
        "range": (125, 200, 170),
    },
    {
        "name": "Triglycerides", "category": "Lipid Profile", "unit": "mg/dL",
        "low": None, "high": 150, "polarity": Polarity.LOWER_IS_BETTER,
        "label": r"Triglycerides?", "aliases": ["TRIGLYCERIDES", "TG"],
        "range": (0, 150, 100),
    },
    {
        "name": "HDL Cholesterol", "category": "Lipid Profile", "unit": "mg/dL",
        "low": 40, "high": 100, "polarity": Polarity.HIGHER_IS_BETTER,
        "label": r"HDL(?:[\s-]+Cholesterol)?", "aliases": ["HDL", "HDL-C", "HIGH DENSITY LIPOPROTEIN"],
        "range": (40, 100, 60),
    },
    {
        "name": "LDL Cholesterol", "category": "Lipid Profile", "unit": "mg/dL",
        "low": None, "high": 100, "polarity": Polarity.LOWER_IS_BETTER,
        "label": r"LDL(?:[\s-]+Cholesterol)?", "aliases": ["LDL", "LDL-C", "LDL-CALCULATED"],
        "range": (0, 100, 70),
    },
    {
        "name": "Vitamin D", "category": "Vitamins", "unit": "ng/mL",
        "low": 30, "high": 100, "polarity": Polarity.HIGHER_IS_BETTER,
        "label": r"Vitamin\s+D3?", "aliases": ["25-OH VITAMIN D", "VITAMIN D", "VITAMIN D3"],
        "range": (30, 100, 50),
    },
    {
        "name": "Vitamin B12", "category": "Vitamins", "unit": "pg/mL",
        "low": 200, "high": 900, "polarity": Polarity.HIGHER_IS_BETTER,
        "label": r"Vitamin\s+B\s?12", "aliases": ["B12", "VITAMIN B12", "COBALAMIN"],
        "range": (200, 900, 500),
    },
    {
        "name": "Creatinine", "category": "Kidney Function", "unit": "mg/dL",
        "low": 0.7, "high": 1.3, "polarity": Polarity.LOWER_IS_BETTER,
        "label": r"Creatinine", "aliases": ["CREATININE", "CREAT", "SERUM CREATININE"],
        "range": (0.7, 1.3, 1.0),
    },
    {
        "name": "HbA1c", "category": "Diabetes", "unit": "%",
        "low": None, "high": 5.7, "polarity": Polarity.LOWER_IS_BETTER,
        "label": r"HbA1c", "aliases": ["A1C", "HBA1C", "HEMOGLOBIN A1C", "GLYCATED HEMOGLOBIN"],
        "range": (4.0, 5.7, 5.0),
    },
    {
        "name": "Hemoglobin", "category": "Complete Blood Count", "unit": "g/dL",
        "low": 13.0, "high": 17.0, "polarity": Polarity.HIGHER_IS_BETTER,
        "label": None, "aliases": ["HGB", "HB", "HEMOGLOBIN", "HAEMOGLOBIN"],
        "range": (13.0, 17.0, 15.0),
    },
]

SEED_PATIENT = {
    "name": "MR. MANJUNATH SWAMY",
    "age": 54,
    "gender": Gender.MALE,
    "id": "ET-250616",
    "report_date": date(2025, 6, 16),
}

SEED_SOURCE_REPORTS = ("MR. MANJUNATH SWAMY Health Report", "Date: 16-06-2025")

SEED_DATES = ("2024-06-10", "2024-12-12", "2025-06-16")

SEED_HISTORY = {
    "Total Cholesterol": (218, 205, 192),
    "Triglycerides": (190, 176, 168),
    "HDL Cholesterol": (36, 38, 38),
    "LDL Cholesterol": (138, 128, 122),
    "Vitamin D": (14, 22, 34),
    "Vitamin B12": (240, 310, 365),
    "Creatinine": (1.2, 1.3, 1.35),
    "HbA1c": (5.9, 5.8, 5.6),
    "Hemoglobin": (14.2, 14.6, 14.8),
}


def default_catalog() -> BiomarkerCatalog:
    return BiomarkerCatalog(
        BiomarkerReference(
            name=item["name"],
            category=item["category"],
            unit=item["unit"],
            low=item["low"],
            high=item["high"],
            label=item["label"],
            aliases=tuple(item["aliases"]),
            polarity=item["polarity"],
            display_range=ReferenceRange(min=item["range"][0], max=item["range"][1], optimal=item["range"][2]),
        )
        for item in BIOMARKERS
    )


def build_seed_record(catalog: BiomarkerCatalog, classifier, history=None) -> PatientRecord:
    """Session-start patient record. ``classifier`` assigns the status of every seeded value."""
    history = SEED_HISTORY if history is None else history
    biomarkers: dict[str, BiomarkerRecord] = {}
    for reference in catalog:
        values = history.get(reference.name, ())
        recorded: list[BiomarkerValue] = []
        previous = None
        for report_date, value in zip(SEED_DATES[-len(values):], values):
            recorded.append(
                BiomarkerValue(
                    value=value,
                    unit=reference.unit,
                    status=classifier.classify(reference.name, value),
                    trend=direction(previous, value),
                    date=report_date,
                    reference_range=reference.display_range,
                )
            )
            previous = value
        if not recorded:
            continue
        biomarkers[reference.name] = BiomarkerRecord(
            name=reference.name,
            category=reference.category,
            current_value=recorded[-1],
            history=tuple(recorded),
        )

    info = PatientInfo(**SEED_PATIENT, last_updated=datetime.now(timezone.utc))
    return PatientRecord(info=info, biomarkers=biomarkers, source_reports=SEED_SOURCE_REPORTS)
