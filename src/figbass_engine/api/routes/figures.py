"""POST endpoints for figured bass text: parse, layout and normalize."""

from __future__ import annotations

import math

from fastapi import APIRouter, HTTPException, Request

from figbass_engine.api.schemas import (
    GroupOut,
    ItemIn,
    ItemOut,
    LayoutOut,
    LayoutRequest,
    NormalizeRequest,
    NormalizeResponse,
    ParseRequest,
)
from figbass_engine.figures.layout import compute_layout
from figbass_engine.figures.models import Group, InvariantViolation, Item
from figbass_engine.figures.notation import normalize_group, normalize_item, normalize_items
from figbass_engine.figures.tokens import TokenTable

router = APIRouter()


def _item_out(item: Item, tokens: TokenTable) -> ItemOut:
    return ItemOut(
        ordinal=item.ordinal,
        prefix=item.prefix,
        digit=item.digit,
        suffix=item.suffix,
        continuation=item.continuation,
        parenthesis=list(item.parentheses),
        display_text=item.display_text,
        normalized_text=normalize_item(item, tokens),
    )


def _group_fields(group: Group, tokens: TokenTable) -> dict:
    return {
        "freeform": group.is_freeform,
        "raw_fallback_text": group.raw_fallback_text,
        "normalized_text": normalize_group(group, tokens),
        "items": [_item_out(item, tokens) for item in group.items],
    }


def _item_from_request(item: ItemIn) -> Item:
    try:
        return Item(
            prefix=item.prefix,
            digit=item.digit,
            suffix=item.suffix,
            continuation=item.continuation,
            parentheses=item.parenthesis,
        )
    except InvariantViolation as e:
        raise HTTPException(422, str(e)) from e


@router.post("/figured-bass/parse", response_model=GroupOut)
async def parse_text(body: ParseRequest, request: Request) -> GroupOut:
    """Parse figured bass text; unparseable text comes back as freeform."""
    tokens = request.app.state.tokens
    group = Group()
    group.set_text(body.text, tokens)
    return GroupOut(**_group_fields(group, tokens))


@router.post("/figured-bass/layout", response_model=LayoutOut)
async def layout_text(body: LayoutRequest, request: Request) -> LayoutOut:
    """Parse figured bass text and compute its continuation lines and alignment."""
    tokens = request.app.state.tokens
    group = Group(duration_ticks=body.duration_ticks, on_event=body.on_event)
    group.set_text(body.text, tokens)

    space = body.space_until_next_event
    if space is None:
        space = math.inf
    compute_layout(group, space, request.app.state.layout_config)

    return LayoutOut(
        **_group_fields(group, tokens),
        duration_ticks=group.duration_ticks,
        on_event=group.on_event,
        line_lengths=group.line_lengths,
        item_offsets=group.item_offsets,
    )


@router.post("/figured-bass/normalize", response_model=NormalizeResponse)
async def normalize(body: NormalizeRequest, request: Request) -> NormalizeResponse:
    """Regenerate canonical text from structured items."""
    items = [_item_from_request(i) for i in body.items]
    return NormalizeResponse(text=normalize_items(items, request.app.state.tokens))
