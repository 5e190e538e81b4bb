"""
Request and response models for /interpret.

ChartRequest carries the caller's chart plus informational fields that are
logged but never checked. InterpretationResponse is the envelope every reply
uses: an interpretation on success, an error message otherwise.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, model_validator


class ChartRequest(BaseModel):
    # chart is opaque: any JSON value, passed through to the prompt
    chart: Any = None
    # informational only; null is accepted
    duration_of_response: Optional[float] = None
    created_at: Optional[str] = None
    custom_prompt: Optional[str] = None


class TokenUsage(BaseModel):
    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)


class GenerationResult(BaseModel):
    interpretation: str
    token_usage: Optional[TokenUsage] = None


class InterpretationResponse(BaseModel):
    success: bool
    interpretation: Optional[str] = None
    error: Optional[str] = None
    token_usage: Optional[TokenUsage] = None
    processing_time: Optional[str] = None

    @model_validator(mode="after")
    def _one_of_interpretation_or_error(self):
        if self.success and (self.interpretation is None or self.error is not None):
            raise ValueError("successful response needs an interpretation and no error")
        if not self.success and (self.error is None or self.interpretation is not None):
            raise ValueError("failed response needs an error and no interpretation")
        return self

    @classmethod
    def ok(cls, result: GenerationResult, elapsed: float) -> "InterpretationResponse":
        return cls(
            success=True,
            interpretation=result.interpretation,
            token_usage=result.token_usage,
            processing_time=f"{max(elapsed, 0.0):.2f}s",
        )

    @classmethod
    def fail(cls, message: str) -> "InterpretationResponse":
        return cls(success=False, error=message)

    def to_body(self) -> Dict[str, Any]:
        """JSON body with absent fields omitted."""
        return self.model_dump(exclude_none=True)
