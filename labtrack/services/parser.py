import logging
import re
import time

from labtrack.models.biomarker import BiomarkerCatalog, BiomarkerReference
from labtrack.schemas.lab_report import RecognitionResult, RecognizedBiomarker, RecognizedPatientInfo

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"Name\s*:\s*([A-Z.]+(?:[ \t]+[A-Z.]+)*)(?![a-z])")
AGE_GENDER_PATTERN = re.compile(r"Age\s*/\s*Gender\s*:\s*(\d+)\s*Y\s*/?\s*([MF])?")
DATE_PATTERN = re.compile(r"Date\s*:\s*(\d[\d-]*)")

_NUMBER = r"\d+(?:\.\d+)?"
# Optional range printed after the unit: "40 - 60", "(40-60)", "< 200", ">30".
_RANGE = rf"(?:[ \t]*\(?[ \t]*({_NUMBER}[ \t]*-[ \t]*{_NUMBER}|[<>]=?[ \t]*{_NUMBER})[ \t]*\)?)?"


def generate_report_id() -> str:
    return f"RPT-{int(time.time() * 1000) % 1_000_000:06d}"


def _value_pattern(reference: BiomarkerReference) -> re.Pattern:
    # The lookbehinds keep "HDL" from matching inside "Non-HDL", "NON HDL" or "VLDL".
    return re.compile(
        rf"(?<![\w-])(?<!non\s){reference.label}\s*:?\s*({_NUMBER})\s*{re.escape(reference.unit)}{_RANGE}",
        re.IGNORECASE,
    )


def _first_group(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


class FieldRecognizer:
    """Reads patient details and catalog biomarkers out of report text with fixed patterns."""

    def __init__(self, catalog: BiomarkerCatalog):
        self._catalog = catalog
        self._patterns = [(reference, _value_pattern(reference)) for reference in catalog.recognizable()]

    def recognize_patient(self, text: str) -> RecognizedPatientInfo:
        age = gender = ""
        match = AGE_GENDER_PATTERN.search(text)
        if match:
            age = match.group(1)
            gender = match.group(2) or ""
        return RecognizedPatientInfo(
            name=_first_group(NAME_PATTERN, text),
            age=age,
            gender=gender,
            id=generate_report_id(),
            report_date=_first_group(DATE_PATTERN, text),
        )

    def recognize_biomarkers(self, text: str) -> dict[str, RecognizedBiomarker]:
        biomarkers: dict[str, RecognizedBiomarker] = {}
        for reference, pattern in self._patterns:
            match = pattern.search(text)
            if not match:
                biomarkers[reference.name] = RecognizedBiomarker(unit=reference.unit)
                continue
            printed_range = match.group(2)
            biomarkers[reference.name] = RecognizedBiomarker(
                value=float(match.group(1)),
                unit=reference.unit,
                reference_range=re.sub(r"\s+", "", printed_range) if printed_range else "",
            )
        return biomarkers

    def recognize(self, text: str, file_name: str = "") -> RecognitionResult:
        biomarkers = self.recognize_biomarkers(text)
        found = sum(1 for item in biomarkers.values() if item.value is not None)
        logger.info("Recognized %d of %d biomarkers in %s", found, len(biomarkers), file_name or "report text")
        return RecognitionResult(patient_info=self.recognize_patient(text), biomarkers=biomarkers, raw_text=text)
