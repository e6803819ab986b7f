"""
Common Schemas

Shared base model and error envelope.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Body of every failed request"""
    error: str = Field(..., description="Human-readable error")
    details: Optional[str] = Field(None, description="Underlying cause, if any")
