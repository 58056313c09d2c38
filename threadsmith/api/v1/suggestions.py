"""Stateless suggestion APIs: check text, group spans, apply replacements."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator

from threadsmith.api.deps import get_checker_gateway
from threadsmith.core.logging import LogEvent, get_logger
from threadsmith.models.spans import GroupedSpan, Span, SpanKind
from threadsmith.services.char_counter import count_characters
from threadsmith.services.checker_gateway import CheckerGateway
from threadsmith.services.offset_editor import apply_best_candidates, apply_replacement, resolve_overlaps
from threadsmith.services.suggestion_grouper import group_spans

logger = get_logger(__name__)
router = APIRouter(prefix="/suggestions", tags=["Suggestions"])


class SpanModel(BaseModel):
    id: str
    kind: SpanKind
    segment_id: str
    start: int = Field(ge=0)
    end: int
    flagged_text: str
    candidates: List[str] = Field(default_factory=list)
    reason: Optional[str] = None
    rule_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_offsets(self) -> "SpanModel":
        if self.end <= self.start:
            raise ValueError("end must be greater than start")
        if self.kind is SpanKind.SPELLING and self.reason is not None:
            raise ValueError("spelling spans do not carry a reason")
        return self

    @classmethod
    def from_span(cls, span: Span) -> "SpanModel":
        return cls(
            id=span.id,
            kind=span.kind,
            segment_id=span.segment_id,
            start=span.start,
            end=span.end,
            flagged_text=span.flagged_text,
            candidates=list(span.candidates),
            reason=span.reason,
            rule_id=span.rule_id,
        )

    def to_span(self) -> Span:
        return Span(
            id=self.id,
            kind=self.kind,
            segment_id=self.segment_id,
            start=self.start,
            end=self.end,
            flagged_text=self.flagged_text,
            candidates=tuple(self.candidates),
            reason=self.reason,
            rule_id=self.rule_id,
        )


class GroupModel(BaseModel):
    flagged_text: str
    segment_id: str
    first_start: int
    occurrences: int
    member_ids: List[str]
    candidates: List[str]
    has_fix: bool

    @classmethod
    def from_group(cls, group: GroupedSpan) -> "GroupModel":
        return cls(**group.to_dict())


class CheckRequest(BaseModel):
    text: str
    segment_id: str = Field(default="segment", min_length=1)
    custom_dictionary: List[str] = Field(default_factory=list)


class CheckResponse(BaseModel):
    spelling: List[SpanModel]
    grammar: List[SpanModel]
    groups: List[GroupModel]
    available: bool
    error: Optional[str] = None


class GroupRequest(BaseModel):
    spans: List[SpanModel]


class GroupResponse(BaseModel):
    groups: List[GroupModel]


class ApplyRequest(BaseModel):
    content: str
    spans: List[SpanModel] = Field(min_length=1)
    replacement: str


class FixAllRequest(BaseModel):
    content: str
    spans: List[SpanModel]


class EditResponse(BaseModel):
    content: str
    char_count: int
    applied_ids: List[str] = Field(default_factory=list)
    skipped_ids: List[str] = Field(default_factory=list)


@router.post("/check", response_model=CheckResponse, summary="Check a block of text")
async def check_text(
    payload: CheckRequest,
    gateway: CheckerGateway = Depends(get_checker_gateway),
) -> CheckResponse:
    result = await gateway.check(payload.text, payload.segment_id, payload.custom_dictionary)
    return CheckResponse(
        spelling=[SpanModel.from_span(s) for s in result.spelling],
        grammar=[SpanModel.from_span(s) for s in result.grammar],
        groups=[GroupModel.from_group(g) for g in group_spans(result.spelling)],
        available=result.available,
        error=result.error,
    )


@router.post("/group", response_model=GroupResponse, summary="Group repeated spelling spans")
async def group(payload: GroupRequest) -> GroupResponse:
    groups = group_spans(s.to_span() for s in payload.spans)
    return GroupResponse(groups=[GroupModel.from_group(g) for g in groups])


@router.post("/apply", response_model=EditResponse, summary="Apply one replacement to spans")
async def apply(payload: ApplyRequest) -> EditResponse:
    spans = [s.to_span() for s in payload.spans]
    content = apply_replacement(payload.content, spans, payload.replacement)
    kept, dropped = resolve_overlaps(spans)
    logger.info(LogEvent.SUGGESTION_APPLIED, applied=len(kept), overlapping=len(dropped))
    return EditResponse(
        content=content,
        char_count=count_characters(content),
        applied_ids=[s.id for s in kept],
        skipped_ids=[s.id for s in dropped],
    )


@router.post("/fix-all", response_model=EditResponse, summary="Apply every span's best candidate")
async def fix_all(payload: FixAllRequest) -> EditResponse:
    outcome = apply_best_candidates(payload.content, [s.to_span() for s in payload.spans])
    return EditResponse(
        content=outcome.content,
        char_count=count_characters(outcome.content),
        applied_ids=outcome.applied_ids,
        skipped_ids=outcome.skipped_ids,
    )
