"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema created and dropped per test
- Bearer token minting for authenticated tests
- HTTPX AsyncClient bound to the ASGI app
- A scripted AI provider in place of Gemini
"""
import io
import json
import os
import tempfile
import uuid
from dataclasses import dataclass, field
from typing import AsyncGenerator, Generator

# Must be set before the app (and its settings) are imported
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = "test-key"
os.environ["JWT_SECRET"] = "test-secret-key-for-jwt-signing-only-000000"
os.environ["RESEND_API_KEY"] = ""
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="rfp-test-")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from app.main import app
from app.core.config import settings
from app.core.deps import get_db
from app.core.rate_limit import limiter
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.models import CompanyProfile, User
from app.db.session import SessionLocal, engine
from app.services import ai_service
from app.services.ai_provider import AIProvider, AIProviderError, ChatMessage, ChatResponse


TEST_PASSWORD = "correct-horse-battery"

RFP_TEXT = (
    "Request for Proposal: Cloud Migration Services. "
    "The City of Springfield seeks a qualified vendor to migrate legacy systems "
    "to a managed cloud platform. Proposals are due 2026-12-01. "
    "The budget shall not exceed $250,000. Contact: Jane Doe, IT Department."
)

PARSED_RFP = {
    "title": "Cloud Migration Services",
    "issuingOrganization": "City of Springfield",
    "projectDescription": "Migrate legacy systems to a managed cloud platform",
    "requirements": [
        {"category": "Technical", "description": "Cloud migration experience", "mandatory": True}
    ],
    "evaluationCriteria": [],
    "deliverables": ["Migration plan", "Migrated workloads"],
    "timeline": {"submissionDeadline": "2026-12-01"},
    "budget": {"amount": "250000", "currency": "USD", "constraints": "Not to exceed"},
    "contactInformation": {"primaryContact": "Jane Doe", "email": "jane@springfield.gov"},
    "additionalNotes": "",
}

PROPOSAL_CONTENT = {
    "folderName": "cloud_migration_services",
    "projectName": "Cloud Migration Services",
    "contactPerson": "Jane Doe",
    "contactDepartment": "IT Department",
    "contactEmail": "jane@springfield.gov",
    "executiveSummary": "We will migrate your systems.\n\nOn time and on budget.",
    "technicalApproach": "Lift, shift and modernize.",
    "resources": [
        {"role": "Cloud Architect", "hours": 100, "lowRate": 150, "highRate": 200, "description": "Design"},
        {"role": "Engineer", "hours": 200, "lowRate": 100, "highRate": 120, "description": "Build"},
    ],
    "projectTimeline": (
        "Phase 1: Discovery & Requirements (2-3 weeks)\n"
        "Phase 2: Migration (4-6 weeks)"
    ),
    "investmentEstimate": {
        "low": 35000,
        "high": 44000,
        "breakdown": [{"component": "Migration", "lowCost": 35000, "highCost": 44000}],
    },
    "valueProposition": "Lower run costs.",
    "questionsForClient": ["Which systems are in scope?"],
    "insights": {"submissionDeadline": "2026-12-01", "keyObjectives": ["Reduce costs"]},
    "calendarEvents": [{"title": "Proposal due", "date": "2026-12-01"}],
}

SCORECARD = {
    "overallFitScore": 78,
    "summary": "Strong technical fit.",
    "criteria": [
        {
            "name": "Resource Gap Analysis",
            "score": 6,
            "reasoning": "Missing a security specialist.",
            "missingResources": [
                {"role": "Security Specialist", "hours": 40, "lowRate": 120, "highRate": 160, "projectArea": "Audit"}
            ],
        }
    ],
}

SLIDES = [
    {"type": "title", "title": "Cloud Migration Services", "subtitle": "For the City of Springfield"},
    {"type": "next_steps", "title": "Next Steps", "steps": ["Kickoff meeting"]},
]

REFINED = {
    "improvedContent": "A sharper executive summary.",
    "changesExplanation": "Tightened the opening.",
    "suggestions": ["Add metrics"],
}


# =============================================================================
# AI provider
# =============================================================================

@dataclass
class FakeAIProvider(AIProvider):
    """
    Scripted provider.

    Queued replies (strings, or exceptions to raise) are used first; otherwise
    the reply is picked from the prompt. `fail_generation_calls` holds the
    1-based proposal-generation calls that should fail.
    """
    replies: list = field(default_factory=list)
    fail_generation_calls: set[int] = field(default_factory=set)
    prompts: list[str] = field(default_factory=list)
    generation_calls: int = 0

    def queue(self, *replies) -> None:
        self.replies.extend(replies)

    def _default_reply(self, prompt: str) -> str:
        if "RFP Document:" in prompt:
            return json.dumps(PARSED_RFP)
        if "Generate a structured proposal" in prompt:
            self.generation_calls += 1
            if self.generation_calls in self.fail_generation_calls:
                raise AIProviderError("Gemini returned HTTP 503")
            return "```json\n" + json.dumps(PROPOSAL_CONTENT) + "\n```"
        if "PROPOSAL CONTENT:" in prompt:
            return json.dumps(SCORECARD)
        if "Respond with a JSON array of slides" in prompt:
            return json.dumps(SLIDES)
        if "You are an expert proposal editor" in prompt:
            return json.dumps(REFINED)
        return '"ok"'

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ) -> ChatResponse:
        prompt = messages[-1].content
        self.prompts.append(prompt)
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
        else:
            reply = self._default_reply(prompt)
        return ChatResponse(
            content=reply,
            prompt_tokens=10,
            completion_tokens=20,
            total_tokens=30,
            model="fake-model",
        )

    async def validate_key(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def fake_ai(monkeypatch) -> FakeAIProvider:
    """Every test talks to the scripted provider, never to Gemini."""
    provider = FakeAIProvider()
    monkeypatch.setattr(ai_service, "get_ai_provider", lambda: provider)
    return provider


# =============================================================================
# Environment Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator[None, None, None]:
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(autouse=True)
def storage_dir(tmp_path, monkeypatch):
    """Local file storage rooted in a per-test directory."""
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(tmp_path))
    return tmp_path


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh schema per test.

    The in-memory database lives on a single shared connection, so the app
    code can commit freely and everything is discarded by drop_all.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


def make_user(db: Session, email: str | None = None, company_name: str = "Acme Consulting") -> User:
    """User with a private company profile, committed."""
    user = User(
        id=uuid.uuid4(),
        email=email or f"test-{uuid.uuid4().hex[:8]}@test.com",
        password_hash=hash_password(TEST_PASSWORD),
        token_version=1,
    )
    db.add(user)
    db.flush()
    db.add(
        CompanyProfile(
            user_id=user.id,
            company_name=company_name,
            visibility="private",
            contact_info={},
            profile_strength=0,
        )
    )
    db.commit()
    return user


@pytest.fixture(scope="function")
def test_user(db: Session) -> User:
    """Create a test user with a company profile."""
    return make_user(db)


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def auth_for(user: User) -> TestAuth:
    return TestAuth(user=user, token=create_access_token(user.id, user.token_version))


@pytest.fixture(scope="function")
def test_auth(test_user: User) -> TestAuth:
    """Create an access token for the test user."""
    return auth_for(test_user)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    test_auth: TestAuth
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated AsyncClient carrying the bearer access token.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=test_auth.headers,
    ) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# File Fixtures
# =============================================================================

def make_pdf(text: str) -> bytes:
    """Single-page PDF with `text` wrapped over several lines."""
    from reportlab.lib.pagesizes import letter
    from reportlab.pdfgen import canvas

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    y = 740
    words = text.split()
    for start in range(0, len(words), 10):
        pdf.drawString(50, y, " ".join(words[start:start + 10]))
        y -= 16
    pdf.save()
    return buffer.getvalue()


def make_docx(*paragraphs: str) -> bytes:
    from docx import Document as DocxDocument

    document = DocxDocument()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def rfp_pdf() -> bytes:
    return make_pdf(RFP_TEXT)


def make_proposal(db: Session, user: User, title: str = "Cloud Migration Services", content: dict | None = None):
    """Committed draft proposal with generated-looking content."""
    from app.db.models import Proposal

    proposal = Proposal(
        user_id=user.id,
        title=title,
        status="draft",
        template="standard",
        content=dict(PROPOSAL_CONTENT) if content is None else content,
        score=0,
    )
    db.add(proposal)
    db.commit()
    return proposal
