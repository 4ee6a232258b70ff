"""Pydantic schemas for the authenticated request context."""

from pydantic import BaseModel, Field


class Principal(BaseModel):
    token: str = Field(..., description="Raw bearer token as presented by the caller")
    session_key: str = Field(..., description="Key for session-scoped state such as profit overrides")
