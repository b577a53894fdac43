"""Insight service - list insights and run the generation pipeline."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from student_insights.core.auth import CallerIdentity
from student_insights.core.config import Settings, get_settings
from student_insights.core.errors import (
    ForbiddenError,
    GenerationFailedError,
    GenerationOverloadedError,
    InsightServiceError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from student_insights.core.metrics import (
    insights_db_failures_total,
    insights_generation_requests_total,
    insights_pipeline_latency_seconds,
)
from student_insights.llm.generation import GenerationClient
from student_insights.llm.prompts.student_insight_v1 import get_student_insight_template
from student_insights.llm.prompts.templates import render_prompt
from student_insights.persistence.insight_repository import InsightRepository
from student_insights.persistence.student_reader import StudentReader
from student_insights.services.record_assembler import (
    AssembledStudent,
    RecordAssembler,
    require_student_id,
)

logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR: dict[type[InsightServiceError], str] = {
    ValidationError: "invalid",
    ForbiddenError: "forbidden",
    NotFoundError: "not_found",
    GenerationOverloadedError: "overloaded",
    GenerationFailedError: "failed",
    PersistenceError: "persistence_error",
}


def build_prompt(payload: dict[str, Any]) -> str:
    """Fixed instruction block followed by the serialized payload."""
    return render_prompt(get_student_insight_template(), payload)


class InsightService:
    """Per-request pipeline over one database session."""

    def __init__(
        self,
        session: AsyncSession,
        generation_client: GenerationClient,
        settings: Settings | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.generation_client = generation_client
        self.student_reader = StudentReader(session)
        self.insight_repo = InsightRepository(session)
        self.assembler = RecordAssembler(
            self.student_reader,
            admin_access_level=self.settings.auth.admin_access_level,
        )

    async def list_insights(self, student_id: str) -> list[dict[str, Any]]:
        """Get all insights for a student, most recent first.

        Bounded by the same request deadline as generation.
        """
        student_id = require_student_id(student_id)
        deadline = self.settings.generation.request_deadline_seconds
        try:
            async with asyncio.timeout(deadline):
                return await self.insight_repo.list_for_student(student_id)
        except TimeoutError as e:
            logger.error(
                "Listing insights exceeded deadline",
                student_id=student_id,
                stage="list",
                deadline_seconds=deadline,
            )
            raise PersistenceError("Internal error while fetching insights.") from e
        except SQLAlchemyError as e:
            insights_db_failures_total.labels(operation="list_insights").inc()
            logger.error(
                "Failed to list insights", student_id=student_id, stage="list", error=str(e)
            )
            raise PersistenceError("Internal error while fetching insights.") from e

    async def generate_insight(self, student_id: str, caller: CallerIdentity) -> dict[str, Any]:
        """Assemble, generate and persist one insight for ``student_id``.

        The whole pipeline is bounded by the configured request deadline. No
        insight row is written unless generation succeeds.
        """
        log = logger.bind(student_id=student_id, user_id=caller.user_id)
        deadline = self.settings.generation.request_deadline_seconds
        started = time.perf_counter()
        stage = "load"

        try:
            async with asyncio.timeout(deadline):
                assembled = await self.assembler.assemble(student_id, caller)
                stage = "generate"
                text = await self.generation_client.generate(build_prompt(assembled.payload))
                stage = "persist"
                insight = await self._persist(assembled, text)
        except TimeoutError as e:
            log.error("Insight pipeline exceeded deadline", stage=stage, deadline_seconds=deadline)
            if stage == "generate":
                error: InsightServiceError = GenerationFailedError(
                    "Internal error while generating insight"
                )
            else:
                error = PersistenceError("Internal error while generating insight")
            self._record_outcome(error)
            raise error from e
        except InsightServiceError as e:
            log.warning("Insight generation failed", stage=stage, error=e.message)
            self._record_outcome(e)
            raise
        finally:
            insights_pipeline_latency_seconds.observe(time.perf_counter() - started)

        insights_generation_requests_total.labels(status="success").inc()
        log.info("Insight generated", insight_id=insight.get("insight_id"))
        return insight

    async def _persist(self, assembled: AssembledStudent, text: str) -> dict[str, Any]:
        try:
            insight = await self.insight_repo.create_insight(
                student_id=assembled.student_id,
                school_id=assembled.school_id,
                input_payload=assembled.payload,
                insight_text=text,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            insights_db_failures_total.labels(operation="create_insight").inc()
            logger.error(
                "Failed to persist generated insight; generated text is discarded",
                student_id=assembled.student_id,
                stage="persist",
                error=str(e),
            )
            try:
                await self.session.rollback()
            except SQLAlchemyError:
                logger.exception("Rollback after failed insight insert also failed")
            raise PersistenceError("Internal error while saving insight.") from e
        return insight

    @staticmethod
    def _record_outcome(error: InsightServiceError) -> None:
        status = _STATUS_BY_ERROR.get(type(error), "failed")
        insights_generation_requests_total.labels(status=status).inc()
