import logging
import re
from collections.abc import Iterable
from functools import lru_cache
from types import MappingProxyType

from rapidfuzz import fuzz

from labtrack.config import settings
from labtrack.models.biomarker import BiomarkerCatalog
from labtrack.schemas.biomarker import Status

logger = logging.getLogger(__name__)


class StatusClassifier:
    """Table-driven status rule: below ``low`` is Low, above ``high`` is High, otherwise Normal.

    Never yields ``Critical``; that status only arrives with externally supplied data.
    """

    def __init__(self, catalog: BiomarkerCatalog):
        self._bounds = MappingProxyType({reference.name: (reference.low, reference.high) for reference in catalog})

    def classify(self, name: str, value: float) -> Status:
        bounds = self._bounds.get(name)
        if bounds is None:
            return Status.NORMAL
        low, high = bounds
        if low is not None and value < low:
            return Status.LOW
        if value > high:
            return Status.HIGH
        return Status.NORMAL


@lru_cache(maxsize=1)
def _default_classifier() -> StatusClassifier:
    from labtrack.seed.biomarker_seed import default_catalog

    return StatusClassifier(default_catalog())


def classify_status(name: str, value: float) -> Status:
    return _default_classifier().classify(name, value)


def _normalize(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


def _fuzzy_match_biomarker(catalog: BiomarkerCatalog, test_name: str, threshold: int) -> tuple[str | None, float]:
    name_norm = _normalize(test_name)
    best_score = -1.0
    best_name = None

    for reference in catalog:
        aliases = [reference.name, *reference.aliases]
        for alias in aliases:
            score = fuzz.ratio(name_norm, _normalize(alias))
            if score > best_score:
                best_score = score
                best_name = reference.name

    if best_score >= threshold:
        return best_name, best_score
    return None, best_score


def classify_test_name(test_name: str, catalog: BiomarkerCatalog, threshold: int | None = None) -> str | None:
    """Map a raw test name to its catalog name, or None when nothing is close enough."""
    name_norm = _normalize(test_name)
    if not name_norm:
        return None
    for reference in catalog:
        if any(_normalize(alias) == name_norm for alias in (reference.name, *reference.aliases)):
            return reference.name

    score_threshold = threshold if threshold is not None else settings.catalog_fuzzy_threshold
    match_name, score = _fuzzy_match_biomarker(catalog, test_name, score_threshold)
    if match_name is None:
        logger.debug("No catalog match for %r (best score %.1f)", test_name, score)
    return match_name


def classify_many(
    test_names: Iterable[str], catalog: BiomarkerCatalog, threshold: int | None = None
) -> dict[str, str | None]:
    return {name: classify_test_name(name, catalog, threshold) for name in test_names}
