"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from figbass_engine.figures.models import Modifier, Parenthesis

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ParseRequest(BaseModel):
    text: str


class LayoutRequest(BaseModel):
    text: str
    duration_ticks: int = Field(0, ge=0)
    on_event: bool = True
    space_until_next_event: float | None = Field(
        None,
        allow_inf_nan=False,
        description="Horizontal space before the next event; omit if unconstrained",
    )


class ItemIn(BaseModel):
    prefix: Modifier = Modifier.NONE
    digit: int = 0
    suffix: Modifier = Modifier.NONE
    continuation: bool = False
    parenthesis: list[Parenthesis] = Field(
        default_factory=lambda: [Parenthesis.NONE] * 5,
    )


class NormalizeRequest(BaseModel):
    items: list[ItemIn]


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ItemOut(BaseModel):
    ordinal: int
    prefix: Modifier
    digit: int
    suffix: Modifier
    continuation: bool
    parenthesis: list[Parenthesis]
    display_text: str
    normalized_text: str


class GroupOut(BaseModel):
    """A parsed figured bass group."""

    freeform: bool
    raw_fallback_text: str | None = None
    normalized_text: str
    items: list[ItemOut]


class LayoutOut(GroupOut):
    duration_ticks: int
    on_event: bool
    line_lengths: list[float]
    item_offsets: list[float]


class NormalizeResponse(BaseModel):
    text: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class TokensOut(BaseModel):
    modifiers: dict[str, list[str]]
    parentheses: dict[str, list[str]]
    continuation: list[str]


class FontOut(BaseModel):
    family: str
    display_name: str
    default_size: float
    line_height: float
