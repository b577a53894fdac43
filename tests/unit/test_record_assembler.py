"""Unit tests for the record assembler."""

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from student_insights.core.auth import CallerIdentity
from student_insights.core.errors import (
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from student_insights.services.record_assembler import (
    STUDENT_ID_REQUIRED_MSG,
    RecordAssembler,
    build_generation_payload,
    can_access_student,
    require_student_id,
)

ADMIN = "Administrador"


def _assembler(student=None, error=None) -> RecordAssembler:
    reader = MagicMock()
    if error is not None:
        reader.load_student_with_relations = AsyncMock(side_effect=error)
    else:
        reader.load_student_with_relations = AsyncMock(return_value=student)
    return RecordAssembler(reader, admin_access_level=ADMIN)


# ---------------------------------------------------------------------------
# build_generation_payload()
# ---------------------------------------------------------------------------


def test_payload_has_fixed_shape(student_record):
    payload = build_generation_payload(student_record)

    assert set(payload) == {"student", "grades", "evaluations", "observations"}
    assert payload["student"] == {
        "name": "Lucas Pereira",
        "enrollment_number": "2024-0042",
        "age": 14,
        "class_name": "9A",
        "condition": {"dyslexia": True, "adhd": False, "notes": "Formal report on file"},
    }
    assert payload["grades"] == student_record["grades"]
    assert payload["evaluations"] == student_record["evaluations"]


def test_payload_reduces_observations_to_text_in_order(student_record):
    payload = build_generation_payload(student_record)

    assert payload["observations"] == [
        "Arrived late twice this week",
        "Very engaged in group work",
    ]


def test_payload_is_deterministic(student_record):
    first = build_generation_payload(student_record)
    second = build_generation_payload(copy.deepcopy(student_record))

    assert first == second


def test_payload_does_not_alias_loaded_record(student_record):
    payload = build_generation_payload(student_record)
    payload["grades"][0]["grade"] = 10.0
    payload["student"]["condition"]["adhd"] = True

    assert student_record["grades"][0]["grade"] == 5.5
    assert student_record["condition"]["adhd"] is False


def test_payload_for_student_without_relations():
    payload = build_generation_payload(
        {"id": "s-2", "name": "Bia", "school_id": "school-1", "grades": [], "observations": None}
    )

    assert payload["student"]["name"] == "Bia"
    assert payload["student"]["condition"] is None
    assert payload["grades"] == []
    assert payload["evaluations"] == []
    assert payload["observations"] == []


def test_payload_excludes_school_and_identifier(student_record):
    payload = build_generation_payload(student_record)

    assert "school_id" not in payload["student"]
    assert "id" not in payload["student"]


# ---------------------------------------------------------------------------
# require_student_id() / can_access_student()
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("value", ["", "   ", None])
def test_require_student_id_rejects_blank(value):
    with pytest.raises(ValidationError) as exc_info:
        require_student_id(value)
    assert exc_info.value.message == STUDENT_ID_REQUIRED_MSG


def test_require_student_id_keeps_value_unchanged():
    assert require_student_id("student-1") == "student-1"
    assert require_student_id(" student-1") == " student-1"


def test_can_access_same_school(teacher_caller, student_record):
    assert can_access_student(teacher_caller, student_record, ADMIN) is True


def test_cannot_access_other_school(teacher_caller, student_record):
    student_record["school_id"] = "school-2"

    assert can_access_student(teacher_caller, student_record, ADMIN) is False


def test_administrator_bypasses_school_scope(admin_caller, student_record):
    assert admin_caller.school_id != student_record["school_id"]
    assert can_access_student(admin_caller, student_record, ADMIN) is True


def test_caller_without_school_is_denied(student_record):
    caller = CallerIdentity(user_id="u-3", access_level="Professor", school_id=None)

    assert can_access_student(caller, student_record, ADMIN) is False


def test_school_ids_compare_as_text(student_record):
    caller = CallerIdentity(user_id="u-4", access_level="Professor", school_id="7")
    student_record["school_id"] = 7

    assert can_access_student(caller, student_record, ADMIN) is True


# ---------------------------------------------------------------------------
# RecordAssembler.assemble()
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_assemble_returns_payload_and_scope(teacher_caller, student_record):
    assembler = _assembler(student_record)

    assembled = await assembler.assemble("student-1", teacher_caller)

    assert assembled.student_id == "student-1"
    assert assembled.school_id == "school-1"
    assert assembled.payload == build_generation_payload(student_record)
    assembler.reader.load_student_with_relations.assert_awaited_once_with("student-1")


@pytest.mark.asyncio
async def test_assemble_blank_id_never_touches_storage(teacher_caller):
    assembler = _assembler()

    with pytest.raises(ValidationError):
        await assembler.assemble("  ", teacher_caller)

    assembler.reader.load_student_with_relations.assert_not_called()


@pytest.mark.asyncio
async def test_assemble_unknown_student(teacher_caller):
    assembler = _assembler(None)

    with pytest.raises(NotFoundError) as exc_info:
        await assembler.assemble("missing", teacher_caller)
    assert exc_info.value.message == "Student not found."


@pytest.mark.asyncio
async def test_assemble_other_school_is_forbidden(teacher_caller, student_record):
    student_record["school_id"] = "school-2"
    assembler = _assembler(student_record)

    with pytest.raises(ForbiddenError) as exc_info:
        await assembler.assemble("student-1", teacher_caller)
    assert "does not belong to your school" in exc_info.value.message


@pytest.mark.asyncio
async def test_assemble_admin_other_school(admin_caller, student_record):
    assembler = _assembler(student_record)

    assembled = await assembler.assemble("student-1", admin_caller)

    assert assembled.school_id == "school-1"


@pytest.mark.asyncio
async def test_assemble_storage_failure(teacher_caller):
    assembler = _assembler(error=OperationalError("SELECT", {}, Exception("db down")))

    with pytest.raises(PersistenceError) as exc_info:
        await assembler.assemble("student-1", teacher_caller)
    assert exc_info.value.message == "Internal error while loading student."


@pytest.mark.asyncio
async def test_assemble_looks_up_id_exactly_as_given(teacher_caller):
    assembler = _assembler(None)

    with pytest.raises(NotFoundError):
        await assembler.assemble(" student-1", teacher_caller)

    assembler.reader.load_student_with_relations.assert_awaited_once_with(" student-1")
