"""Insight repository - create and list generated insights."""

import json
import uuid
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from student_insights.persistence.base import as_json, row_to_dict, utc_now

_INSIGHT_COLUMNS = "insight_id, student_id, school_id, input_payload, insight_text, generated_at"


def _to_record(row: Any) -> dict[str, Any]:
    record = row_to_dict(row)
    record["input_payload"] = as_json(record.get("input_payload"))
    return record


class InsightRepository:
    """CRUD operations for insights.

    Rows are append-only: an insight is written once, together with the
    payload it was generated from, and never updated.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_insight(
        self,
        student_id: str,
        school_id: str,
        input_payload: dict[str, Any],
        insight_text: str,
    ) -> dict[str, Any]:
        """Insert a new insight and return the persisted row."""
        query = text(f"""
            INSERT INTO insights
                (insight_id, student_id, school_id, input_payload, insight_text, generated_at)
            VALUES
                (:insight_id, :student_id, :school_id, CAST(:input_payload AS JSONB),
                 :insight_text, :generated_at)
            RETURNING {_INSIGHT_COLUMNS}
        """)
        result = await self.session.execute(
            query,
            {
                "insight_id": uuid.uuid4(),
                "student_id": student_id,
                "school_id": school_id,
                "input_payload": json.dumps(input_payload, ensure_ascii=False),
                "insight_text": insight_text,
                "generated_at": utc_now(),
            },
        )
        return _to_record(result.fetchone())

    async def list_for_student(self, student_id: str) -> list[dict[str, Any]]:
        """Get all insights for a student, most recent first."""
        query = text(f"""
            SELECT {_INSIGHT_COLUMNS}
            FROM insights
            WHERE student_id = :student_id
            ORDER BY generated_at DESC, insight_id DESC
        """)
        result = await self.session.execute(query, {"student_id": student_id})
        return [_to_record(row) for row in result.fetchall()]
