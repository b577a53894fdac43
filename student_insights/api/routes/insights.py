"""Insight routes."""

from fastapi import APIRouter

from student_insights.core.dependencies import CurrentCaller, InsightServiceDep
from student_insights.core.errors import ValidationError
from student_insights.schemas.v1.common import ErrorResponse
from student_insights.schemas.v1.insights import GenerateInsightResponse, InsightRecord
from student_insights.services.record_assembler import STUDENT_ID_REQUIRED_MSG

router = APIRouter(prefix="/insights", tags=["insights"])

INSIGHT_CREATED_MSG = "Insight generated successfully!"

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500, 503)
}


@router.get(
    "/students/{student_id}",
    response_model=list[InsightRecord],
    responses=_ERROR_RESPONSES,
)
async def list_student_insights(
    student_id: str,
    caller: CurrentCaller,
    service: InsightServiceDep,
):
    """List a student's insights, most recent first."""
    return await service.list_insights(student_id)


@router.post(
    "/students/{student_id}",
    response_model=GenerateInsightResponse,
    responses=_ERROR_RESPONSES,
)
async def generate_student_insight(
    student_id: str,
    caller: CurrentCaller,
    service: InsightServiceDep,
):
    """Generate, persist and return a new insight for a student."""
    insight = await service.generate_insight(student_id, caller)
    return GenerateInsightResponse(message=INSIGHT_CREATED_MSG, insight=insight)


@router.get("/students/", include_in_schema=False)
@router.post("/students/", include_in_schema=False)
async def missing_student_id(caller: CurrentCaller):
    raise ValidationError(STUDENT_ID_REQUIRED_MSG)
