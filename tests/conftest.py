"""Root conftest for tests."""

import os
import time
from typing import Any

import pytest
from jose import jwt

if os.getenv("APP_ENV", "").strip().lower() == "prod":
    raise RuntimeError("Refusing to run tests with APP_ENV=prod")

TEST_JWT_SECRET = "test-jwt-secret"

os.environ["APP_ENV"] = "test"
os.environ["AUTH_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["GEMINI_API_KEY"] = "test-gemini-key"
os.environ["OTEL_LOG_RECORD_FORMAT"] = "console"
os.environ.setdefault("METRICS_TOKEN", "test-metrics-token")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    dir_marker_map = {
        "unit": pytest.mark.unit,
        "smoke": pytest.mark.smoke,
    }
    for item in items:
        test_path = str(item.fspath)
        for dir_name, marker in dir_marker_map.items():
            if f"/{dir_name}/" in test_path or f"\\{dir_name}\\" in test_path:
                item.add_marker(marker)
                break


# ── Tokens ────────────────────────────────────────────────────────


@pytest.fixture
def make_token():
    """Factory for signed tokens shaped like the identity system's."""

    def _make(
        *,
        user_id: str = "user-1",
        name: str = "Ana Souza",
        access_level: str = "Professor",
        school_id: str | None = "school-1",
        secret: str = TEST_JWT_SECRET,
        expires_in: int = 3600,
    ) -> str:
        claims: dict[str, Any] = {
            "id": user_id,
            "nome": name,
            "acesso": access_level,
            "exp": int(time.time()) + expires_in,
        }
        if school_id is not None:
            claims["escolaId"] = school_id
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make


@pytest.fixture
def teacher_caller():
    from student_insights.core.auth import CallerIdentity

    return CallerIdentity(
        user_id="user-1", name="Ana Souza", access_level="Professor", school_id="school-1"
    )


@pytest.fixture
def admin_caller():
    from student_insights.core.auth import CallerIdentity

    return CallerIdentity(
        user_id="admin-1", name="Root", access_level="Administrador", school_id="school-9"
    )


# ── Student data ──────────────────────────────────────────────────


@pytest.fixture
def student_record():
    """A loaded student with every related collection."""
    return {
        "id": "student-1",
        "name": "Lucas Pereira",
        "enrollment_number": "2024-0042",
        "age": 14,
        "school_id": "school-1",
        "class_name": "9A",
        "condition": {"dyslexia": True, "adhd": False, "notes": "Formal report on file"},
        "grades": [
            {"id": "g-1", "period": 1, "grade": 5.5, "subject": "Portuguese"},
            {"id": "g-2", "period": 1, "grade": 9.0, "subject": "Mathematics"},
        ],
        "evaluations": [
            {
                "id": "e-1",
                "score": 7.0,
                "feedback": "Good oral presentation",
                "evaluated_at": "2025-03-10T12:00:00+00:00",
                "activity": {
                    "id": "a-1",
                    "title": "Science fair",
                    "modality": "pair",
                    "open_book": True,
                    "subject": "Science",
                    "teacher": "Carla Lima",
                },
            }
        ],
        "observations": [
            {"id": "o-1", "text": "Arrived late twice this week", "created_at": "2025-03-01"},
            {"id": "o-2", "text": "Very engaged in group work", "created_at": "2025-03-05"},
        ],
    }


# ── Generation fakes ──────────────────────────────────────────────


class FakeProvider:
    """Provider that replays scripted outcomes: a str is returned, an exception raised."""

    def __init__(self, outcomes: list[Any]):
        self.outcomes = outcomes
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        outcome = self.outcomes[min(self.calls - 1, len(self.outcomes) - 1)]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def overloaded():
    """Factory for the provider's overload error."""
    from student_insights.llm.provider import GenerationProviderError

    return lambda: GenerationProviderError("Gemini returned HTTP 503", status_code=503)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fake_provider_factory():
    return FakeProvider
