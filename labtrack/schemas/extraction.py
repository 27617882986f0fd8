from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TextExtracted(BaseModel):
    kind: Literal["text"] = "text"
    text: str
    method: Literal["pdfjs"] = "pdfjs"


class NeedsOcr(BaseModel):
    kind: Literal["needs_ocr"] = "needs_ocr"
    text: str = ""
    method: Literal["ocr-needed"] = "ocr-needed"


class ExtractionFailed(BaseModel):
    kind: Literal["failed"] = "failed"
    reason: str


ExtractionResult = Annotated[Union[TextExtracted, NeedsOcr, ExtractionFailed], Field(discriminator="kind")]
