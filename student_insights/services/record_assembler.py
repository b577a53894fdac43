"""Record assembler - load, authorize and flatten a student for generation."""

import copy
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from student_insights.core.auth import CallerIdentity
from student_insights.core.errors import (
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from student_insights.core.metrics import insights_db_failures_total
from student_insights.persistence.student_reader import StudentReader

logger = structlog.get_logger(__name__)

STUDENT_ID_REQUIRED_MSG = "Student ID is required."

STUDENT_FIELDS = ("name", "enrollment_number", "age", "class_name", "condition")


@dataclass(frozen=True)
class AssembledStudent:
    """A student cleared for generation, with the payload built from it."""

    student_id: str
    school_id: str
    payload: dict[str, Any]


def require_student_id(student_id: str | None) -> str:
    """Reject a missing or blank id; any other id is used exactly as given."""
    if student_id is None or not student_id.strip():
        raise ValidationError(STUDENT_ID_REQUIRED_MSG)
    return student_id


def build_generation_payload(student: dict[str, Any]) -> dict[str, Any]:
    """Project a loaded student onto the generation payload.

    Pure: the same student always yields the same shape. Observations are
    reduced to their text, in load order.
    """
    return {
        "student": {field: copy.deepcopy(student.get(field)) for field in STUDENT_FIELDS},
        "grades": copy.deepcopy(student.get("grades") or []),
        "evaluations": copy.deepcopy(student.get("evaluations") or []),
        "observations": [obs.get("text") for obs in student.get("observations") or []],
    }


def can_access_student(caller: CallerIdentity, student: dict[str, Any], admin_access_level: str) -> bool:
    if caller.is_administrator(admin_access_level):
        return True
    return caller.school_id is not None and str(caller.school_id) == str(student.get("school_id"))


class RecordAssembler:
    """Loads a student, checks school scope and builds the generation payload."""

    def __init__(self, reader: StudentReader, admin_access_level: str):
        self.reader = reader
        self.admin_access_level = admin_access_level

    async def assemble(self, student_id: str, caller: CallerIdentity) -> AssembledStudent:
        student_id = require_student_id(student_id)

        try:
            student = await self.reader.load_student_with_relations(student_id)
        except SQLAlchemyError as e:
            insights_db_failures_total.labels(operation="load_student").inc()
            logger.error("Failed to load student", student_id=student_id, error=str(e))
            raise PersistenceError("Internal error while loading student.") from e

        if student is None:
            raise NotFoundError("Student not found.", details={"student_id": student_id})

        if not can_access_student(caller, student, self.admin_access_level):
            logger.warning(
                "Access denied - student belongs to another school",
                student_id=student_id,
                user_id=caller.user_id,
                caller_school_id=caller.school_id,
            )
            raise ForbiddenError("Access denied: student does not belong to your school.")

        return AssembledStudent(
            student_id=str(student["id"]),
            school_id=str(student["school_id"]),
            payload=build_generation_payload(student),
        )
