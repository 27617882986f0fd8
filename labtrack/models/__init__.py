from labtrack.models.biomarker import BiomarkerCatalog, BiomarkerReference, Polarity

__all__ = [
    "BiomarkerCatalog",
    "BiomarkerReference",
    "Polarity",
]
