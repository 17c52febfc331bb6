"""
Analysis Result Model
=====================

Structured output of an analysis gateway for a composite image.

None of the fields is guaranteed to be present; backends populate
whatever they could derive.
"""

from typing import Optional

from pydantic import BaseModel, Field


class AnalysisResult(BaseModel):
    """
    Result of analyzing a stitched screenshot.

    Attributes:
        summary: Short description of the content or layout
        text: Visible text extracted from the image
        code: Main code logic, when the image shows source code
    """

    summary: Optional[str] = Field(
        default=None,
        description="Concise summary of the screenshot",
    )

    text: Optional[str] = Field(
        default=None,
        description="Visible text extracted from the screenshot",
    )

    code: Optional[str] = Field(
        default=None,
        description="Extracted code block, if the screenshot contains code",
    )

    @property
    def is_empty(self) -> bool:
        return not (self.summary or self.text or self.code)
