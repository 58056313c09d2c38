"""Segment APIs - weighted character counting for thread drafts."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from threadsmith.api.deps import get_app_settings
from threadsmith.core.config import Settings
from threadsmith.services.char_counter import count_characters

router = APIRouter(prefix="/segments", tags=["Segments"])


class CountRequest(BaseModel):
    segments: List[str] = Field(min_length=1)


class SegmentCount(BaseModel):
    index: int
    char_count: int
    remaining: int
    over_limit: bool


class CountResponse(BaseModel):
    segments: List[SegmentCount]
    total_characters: int
    limit: int


@router.post("/count", response_model=CountResponse, summary="Count weighted characters per segment")
async def count_segments(
    payload: CountRequest,
    settings: Settings = Depends(get_app_settings),
) -> CountResponse:
    limit = settings.max_tweet_length
    counts = []
    for index, text in enumerate(payload.segments):
        char_count = count_characters(text)
        counts.append(SegmentCount(
            index=index,
            char_count=char_count,
            remaining=limit - char_count,
            over_limit=char_count > limit,
        ))
    return CountResponse(
        segments=counts,
        total_characters=sum(c.char_count for c in counts),
        limit=limit,
    )
