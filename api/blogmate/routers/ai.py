"""AI authoring helpers. All endpoints require a logged-in user."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from .. import schemas
from ..auth import get_current_user
from ..deps import get_ai
from ..services.ai import AIHelper, BlogRecommendation, ValidationResult

router = APIRouter(prefix="/ai", tags=["AI"], dependencies=[Depends(get_current_user)])


@router.post("/recommend", response_model=list[BlogRecommendation])
def recommend_blogs(
    payload: schemas.AIData, ai: AIHelper = Depends(get_ai)
) -> list[BlogRecommendation]:
    """Five blogs related to the given draft."""
    return ai.recommend_blogs(payload.title, payload.content, payload.tags)


@router.post("/recommendTitle", response_model=schemas.TitleResponse)
def recommend_title(
    payload: schemas.AIData, ai: AIHelper = Depends(get_ai)
) -> schemas.TitleResponse:
    return schemas.TitleResponse(title=ai.recommend_title(payload.content, payload.tags))


@router.post("/recommendContent", response_model=schemas.ContentResponse)
def recommend_content(
    payload: schemas.AIData, ai: AIHelper = Depends(get_ai)
) -> schemas.ContentResponse:
    return schemas.ContentResponse(content=ai.recommend_content(payload.title, payload.tags))


@router.post("/recommendTags", response_model=schemas.TagsResponse)
def recommend_tags(
    payload: schemas.AIData, ai: AIHelper = Depends(get_ai)
) -> schemas.TagsResponse:
    return schemas.TagsResponse(tags=ai.recommend_tags(payload.title, payload.content))


@router.post("/summarize", response_model=schemas.SummaryResponse)
def summarize(
    payload: schemas.AIData, ai: AIHelper = Depends(get_ai)
) -> schemas.SummaryResponse:
    parts = [payload.title, payload.content]
    if payload.tags:
        parts.append("Tags: " + ", ".join(payload.tags))
    data = "\n\n".join(part for part in parts if part)
    return schemas.SummaryResponse(summary=ai.summarize(data))


@router.post("/refine", response_model=schemas.ContentResponse)
def refine(
    payload: schemas.AIData, ai: AIHelper = Depends(get_ai)
) -> schemas.ContentResponse:
    return schemas.ContentResponse(content=ai.refine(payload.content))


@router.post("/validate", response_model=ValidationResult)
def validate(payload: schemas.AIData, ai: AIHelper = Depends(get_ai)) -> ValidationResult:
    """Check a draft against community guidelines."""
    return ai.validate(payload.content)


@router.post("/chat", response_model=schemas.ChatResponse)
def chat(
    payload: schemas.ChatRequest,
    ai: AIHelper = Depends(get_ai),
) -> schemas.ChatResponse:
    """Free-form chat, limited to blogging topics."""
    return schemas.ChatResponse(response=ai.chat(payload.message))
