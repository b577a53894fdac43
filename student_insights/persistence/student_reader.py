"""Student reader - READ-ONLY queries on the school tables."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from student_insights.persistence.base import as_json, row_to_dict


class StudentReader:
    """Read-only queries on students and their related records.

    Tables are owned by the school management system; this service never
    writes to them.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_student(self, student_id: str) -> dict[str, Any] | None:
        """Get student with class name and registered condition."""
        query = text("""
            SELECT s.id, s.name, s.enrollment_number, s.age, s.school_id,
                   c.name AS class_name,
                   to_jsonb(sc) - 'id' - 'student_id' AS condition
            FROM students s
            LEFT JOIN classes c ON c.id = s.class_id
            LEFT JOIN student_conditions sc ON sc.student_id = s.id
            WHERE s.id = :student_id
        """)
        result = await self.session.execute(query, {"student_id": student_id})
        row = result.fetchone()
        if row is None:
            return None
        student = row_to_dict(row)
        student["condition"] = as_json(student.get("condition"))
        return student

    async def get_period_grades(self, student_id: str) -> list[dict[str, Any]]:
        """Get period grades, each tagged with its subject."""
        query = text("""
            SELECT g.id, g.period, g.grade, sub.name AS subject
            FROM period_grades g
            JOIN subjects sub ON sub.id = g.subject_id
            WHERE g.student_id = :student_id
            ORDER BY g.period ASC, sub.name ASC
        """)
        result = await self.session.execute(query, {"student_id": student_id})
        return [row_to_dict(row) for row in result.fetchall()]

    async def get_evaluations(self, student_id: str) -> list[dict[str, Any]]:
        """Get activity evaluations with activity metadata, subject and teacher."""
        query = text("""
            SELECT e.id, e.score, e.feedback, e.evaluated_at,
                   to_jsonb(a) - 'subject_id' - 'teacher_id' AS activity,
                   sub.name AS subject,
                   t.name AS teacher
            FROM evaluations e
            JOIN activities a ON a.id = e.activity_id
            LEFT JOIN subjects sub ON sub.id = a.subject_id
            LEFT JOIN teachers t ON t.id = a.teacher_id
            WHERE e.student_id = :student_id
            ORDER BY e.evaluated_at ASC
        """)
        result = await self.session.execute(query, {"student_id": student_id})
        evaluations = []
        for row in result.fetchall():
            evaluation = row_to_dict(row)
            activity = as_json(evaluation.pop("activity")) or {}
            activity["subject"] = evaluation.pop("subject")
            activity["teacher"] = evaluation.pop("teacher")
            evaluation["activity"] = activity
            evaluations.append(evaluation)
        return evaluations

    async def get_observations(self, student_id: str) -> list[dict[str, Any]]:
        """Get teacher observations, oldest first."""
        query = text("""
            SELECT o.id, o.text, o.created_at
            FROM observations o
            WHERE o.student_id = :student_id
            ORDER BY o.created_at ASC, o.id ASC
        """)
        result = await self.session.execute(query, {"student_id": student_id})
        return [row_to_dict(row) for row in result.fetchall()]

    async def load_student_with_relations(self, student_id: str) -> dict[str, Any] | None:
        """Load a student and every related collection on this session.

        Returns None when the student does not exist.
        """
        student = await self.get_student(student_id)
        if student is None:
            return None
        student["grades"] = await self.get_period_grades(student_id)
        student["evaluations"] = await self.get_evaluations(student_id)
        student["observations"] = await self.get_observations(student_id)
        return student
