"""
Contract models exchanged between the router, the fetcher and the verifier.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class UriSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str = Field(..., description="Location of the signed source")


class OpenOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    allow_inline_execution: bool = Field(
        default=False,
        description="Explicit opt-in required to compile inline string sources",
    )


class FetchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    method: str = "GET"


class FetchResponse(BaseModel):
    """Response handed to the verifier. ``data`` is checked to be a string by the core."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    data: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)
    status_code: int = 200
    url: str = ""


class ComponentState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
