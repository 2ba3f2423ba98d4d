"""
Pydantic models for control-plane responses.
"""

import datetime

from pydantic import BaseModel, Field


class BindingSummary(BaseModel):
    """Point-in-time view of one active port binding."""

    port: int = Field(..., description="Local listen port")
    target: str = Field(..., description="Upstream address as host:port")
    last_active: datetime.datetime = Field(
        ..., description="Time of the most recent bind request for this port"
    )

    def to_line(self) -> str:
        """Render as a /list text line (without trailing newline)."""
        return f"{self.port} => {self.target}  {self.last_active}"


class BindingList(BaseModel):
    """Response body for the JSON bindings listing."""

    bindings: list[BindingSummary] = Field(default_factory=list)
    count: int = 0
