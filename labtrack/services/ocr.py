"""Text recognition for documents without a usable text layer.

``SimulatedOcrRecognizer`` is a placeholder that fabricates a plausible report
from the file name and size. ``LlamaParseRecognizer`` runs real OCR through
LlamaParse. Both return plain text that goes through the same field
recognition as extracted PDF text.
"""
import logging
import os
import random
import tempfile
import zlib
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import date

from labtrack.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class TextRecognizer(ABC):
    """Turns raw document bytes into plain text."""

    @abstractmethod
    def recognize_text(self, file_bytes: bytes, file_name: str) -> str:
        """Return the document text. Raise ``RuntimeError`` when the engine is unusable."""


FIRST_NAMES = {
    "M": ("RAVI", "SURESH", "ARJUN", "MANOJ", "KIRAN", "VIKRAM"),
    "F": ("ANITA", "KAVYA", "LAKSHMI", "PRIYA", "DEEPA", "MEERA"),
}
LAST_NAMES = ("KUMAR", "SHARMA", "REDDY", "NAIR", "RAO", "IYER")

NARRATIVE_TEMPLATE = """ECOTOWN DIAGNOSTICS
Name: {title} {first} {last}
Age/Gender: {age}Y/{gender}
Date: {date}
LIPID PROFILE
Total Cholesterol {total_cholesterol} mg/dL 125 - 200
Triglycerides {triglycerides} mg/dL < 150
HDL Cholesterol {hdl} mg/dL 40 - 60
LDL Cholesterol {ldl} mg/dL < 100
KIDNEY FUNCTION
Creatinine {creatinine} mg/dL 0.7 - 1.3
"""

TABULAR_TEMPLATE = """HEALTH CHECK REPORT
Patient Name: {title} {first} {last}   Age/Gender: {age} Y / {gender}
Report Date: {date}
Test                 Result   Unit    Reference
HDL                  {hdl}     mg/dL   40 - 60
LDL                  {ldl}     mg/dL   < 100
Vitamin D            {vitamin_d}     ng/mL   30 - 100
Vitamin B12          {vitamin_b12}    pg/mL   200 - 900
HbA1c                {hba1c}      %       4.0 - 5.6
"""


class SimulatedOcrRecognizer(TextRecognizer):
    """Deterministic stand-in for an OCR engine. The file content is never decoded."""

    templates = (NARRATIVE_TEMPLATE, TABULAR_TEMPLATE)

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today

    def recognize_text(self, file_bytes: bytes, file_name: str) -> str:
        seed = zlib.crc32(f"{os.path.basename(file_name)}:{len(file_bytes)}".encode("utf-8"))
        rng = random.Random(seed)
        gender = "M" if seed % 2 == 0 else "F"
        fields = {
            "title": "MR." if gender == "M" else "MS.",
            "first": rng.choice(FIRST_NAMES[gender]),
            "last": rng.choice(LAST_NAMES),
            "age": 25 + seed % 50,
            "gender": gender,
            "date": self._today().strftime("%d-%m-%Y"),
            "total_cholesterol": rng.randint(150, 240),
            "triglycerides": rng.randint(90, 220),
            "hdl": rng.randint(32, 65),
            "ldl": rng.randint(80, 160),
            "creatinine": round(rng.uniform(0.6, 1.5), 2),
            "vitamin_d": rng.randint(12, 60),
            "vitamin_b12": rng.randint(180, 750),
            "hba1c": round(rng.uniform(4.8, 6.8), 1),
        }
        index = (seed // 7) % len(self.templates)
        logger.info("Simulated OCR for %s using template %d", file_name, index)
        template = self.templates[index]
        return template.format(**fields)


class LlamaParseRecognizer(TextRecognizer):
    def __init__(self, api_key: str | None = None):
        self._api_key = api_key

    def recognize_text(self, file_bytes: bytes, file_name: str) -> str:
        try:
            from llama_parse import LlamaParse
        except ImportError as exc:
            raise RuntimeError("llama_parse is not installed") from exc

        api_key = self._api_key or default_settings.llama_cloud_api_key
        if not api_key:
            raise RuntimeError("LLAMA_CLOUD_API_KEY is missing")

        parser = LlamaParse(api_key=api_key, high_res_ocr=True, result_type="text")
        suffix = os.path.splitext(file_name)[1] or ".pdf"
        with tempfile.NamedTemporaryFile(suffix=suffix) as tmp:
            tmp.write(file_bytes)
            tmp.flush()
            documents = parser.load_data(tmp.name, extra_info={"file_name": os.path.basename(file_name)})
        return "\n\n".join(doc.text for doc in documents)


def get_text_recognizer(config: Settings = default_settings) -> TextRecognizer:
    if config.ocr_provider == "simulated":
        return SimulatedOcrRecognizer()
    if config.ocr_provider == "llamaparse":
        return LlamaParseRecognizer(api_key=config.llama_cloud_api_key)
    raise ValueError(f"Unsupported OCR provider: {config.ocr_provider}")
