"""
Structured solution schemas.

`SolutionPayload` validates the raw JSON a language model returns; it is
deliberately lenient about optional fields and strict about the ones every
answer needs. `Solution` is the normalized shape every solving backend
produces.
"""

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


def _require_number(value: Any, field: str) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field} must be a number")
    return value


def _require_text(value: str, field: str) -> str:
    if not value.strip():
        raise ValueError(f"{field} must not be empty")
    return value


# =============================================================================
# NORMALIZED SOLUTION
# =============================================================================

class SolutionStep(BaseModel):
    """A single step of a worked solution."""
    step_number: int = Field(..., ge=1)
    description: str
    mathematical_expression: Optional[str] = None
    reasoning: str


class Solution(BaseModel):
    """Solution produced by a solving backend."""
    steps: List[SolutionStep] = Field(..., min_length=1)
    final_answer: str
    explanation: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    backend_id: str


# =============================================================================
# RAW MODEL OUTPUT
# =============================================================================

class PayloadStep(BaseModel):
    step_number: float
    description: str
    mathematical_expression: Optional[str] = None
    reasoning: str

    @field_validator("step_number", mode="before")
    @classmethod
    def step_number_is_numeric(cls, v):
        return _require_number(v, "step_number")

    @field_validator("description", "reasoning")
    @classmethod
    def text_not_empty(cls, v, info):
        return _require_text(v, info.field_name)

    @field_validator("mathematical_expression", mode="before")
    @classmethod
    def expression_as_text(cls, v):
        # Models sometimes emit bare numbers here
        if v is None or isinstance(v, str):
            return v
        return str(v)


class SolutionPayload(BaseModel):
    """JSON object returned by a language model, before normalization."""
    steps: List[PayloadStep] = Field(..., min_length=1)
    final_answer: str
    explanation: str
    confidence_score: float = Field(
        ...,
        validation_alias=AliasChoices("confidence_score", "confidence"),
    )

    @field_validator("confidence_score", mode="before")
    @classmethod
    def confidence_is_numeric(cls, v):
        return _require_number(v, "confidence_score")

    def to_solution(self, backend_id: str) -> Solution:
        """Renumber steps 1..n in payload order and clamp confidence to [0, 1]."""
        steps = [
            SolutionStep(
                step_number=index,
                description=step.description,
                mathematical_expression=step.mathematical_expression,
                reasoning=step.reasoning,
            )
            for index, step in enumerate(self.steps, start=1)
        ]
        return Solution(
            steps=steps,
            final_answer=self.final_answer,
            explanation=self.explanation,
            confidence=min(1.0, max(0.0, self.confidence_score)),
            backend_id=backend_id,
        )
