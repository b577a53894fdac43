"""Insight schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class InsightRecord(BaseModel):
    insight_id: str
    student_id: str
    school_id: str
    input_payload: dict[str, Any]
    insight_text: str
    generated_at: datetime


class GenerateInsightResponse(BaseModel):
    message: str
    insight: InsightRecord
