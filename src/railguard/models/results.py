"""
Run result models.

A RunResult is produced once per successful ``Pipeline.run`` call and is
owned by the caller. Both models are frozen.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class RunMetadata(BaseModel):
    """Execution metadata for a successful run."""
    model_config = ConfigDict(frozen=True)
    
    attempts: int = Field(..., ge=1, description="Generation attempts consumed (1 = first try)")
    elapsed_ms: int = Field(..., ge=0, description="Wall time of the whole run, retries included")


class RunResult(BaseModel):
    """
    Output of a successful run.
    
    ``parsed`` holds the decoded model instance when a structural descriptor
    is configured, and is None otherwise.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
    
    raw: str = Field(..., description="Raw text returned by the generation client")
    parsed: Optional[Any] = Field(default=None, description="Decoded structured value, if any")
    metadata: RunMetadata
    
    @property
    def attempts(self) -> int:
        return self.metadata.attempts
