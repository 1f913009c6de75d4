"""GET endpoints for reference data (token spellings, fonts)."""

from __future__ import annotations

from fastapi import APIRouter, Request

from figbass_engine.api.schemas import FontOut, TokensOut

router = APIRouter()


@router.get("/tokens", response_model=TokensOut)
async def get_tokens(request: Request) -> TokensOut:
    """Return token spellings; the first spelling of each token is canonical."""
    return TokensOut(**request.app.state.tokens.to_dict())


@router.get("/fonts", response_model=list[FontOut])
async def get_fonts(request: Request) -> list[FontOut]:
    """Return the configured figured bass fonts."""
    return [
        FontOut(
            family=f.family,
            display_name=f.display_name,
            default_size=f.default_size,
            line_height=f.line_height,
        )
        for f in request.app.state.fonts.values()
    ]
