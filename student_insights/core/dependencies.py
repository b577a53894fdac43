"""Dependency providers for routes."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from student_insights.core.auth import CallerIdentity, CurrentCaller
from student_insights.core.database import get_session
from student_insights.llm.generation import GenerationClient
from student_insights.services.insight_service import InsightService


def get_generation_client(request: Request) -> GenerationClient:
    """Process-wide generation client created in the application lifespan."""
    return request.app.state.generation_client


def get_insight_service(
    session: AsyncSession = Depends(get_session),
    generation_client: GenerationClient = Depends(get_generation_client),
) -> InsightService:
    return InsightService(session, generation_client)


InsightServiceDep = Annotated[InsightService, Depends(get_insight_service)]

__all__ = [
    "CallerIdentity",
    "CurrentCaller",
    "InsightServiceDep",
    "get_generation_client",
    "get_insight_service",
]
