"""Domain prompts for the AI gateway.

Every helper builds a fixed prompt, sends it through the configured provider
and returns the parsed JSON. Nothing is cached and nothing is retried.
"""

import json
import logging
from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.errors import UpstreamFailureError, ValidationError
from app.db.enums import ProposalTemplate
from app.services import ai_response_validation
from app.services.ai_provider import AIProvider, AIProviderError, ChatMessage, get_provider
from app.services.ai_response_validation import MalformedAIResponseError

logger = logging.getLogger(__name__)

JSON_ONLY_INSTRUCTION = (
    "Respond with valid JSON only. Do not include any other text or markdown formatting."
)
MAX_RFP_PROMPT_CHARS = 30000

PROPOSAL_REQUIRED_KEYS = (
    "executiveSummary",
    "technicalApproach",
    "resources",
    "projectTimeline",
    "investmentEstimate",
    "valueProposition",
    "questionsForClient",
    "insights",
    "calendarEvents",
)


# =============================================================================
# Output models (scorecard, slideshow)
# =============================================================================

class MissingResource(BaseModel):
    role: str
    hours: int = 0
    lowRate: float = 0
    highRate: float = 0
    projectArea: str = ""


class ScorecardCriterion(BaseModel):
    name: str
    score: int = Field(ge=0, le=10)
    reasoning: str
    missingResources: list[MissingResource] = Field(default_factory=list)


class Scorecard(BaseModel):
    overallFitScore: int = Field(ge=0, le=100)
    summary: str
    criteria: list[ScorecardCriterion]


class Slide(BaseModel):
    model_config = {"extra": "allow"}

    type: str
    title: str
    subtitle: str | None = None
    points: list[str] | None = None
    steps: list[str] | None = None


# =============================================================================
# Provider
# =============================================================================

def get_ai_provider() -> AIProvider:
    """Provider built from settings (GEMINI_API_KEY / GEMINI_MODEL)."""
    if not settings.GEMINI_API_KEY:
        raise UpstreamFailureError("AI provider is not configured")
    return get_provider(
        "gemini",
        settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        timeout=settings.AI_TIMEOUT_SECONDS,
    )


async def generate_content(prompt: str, *, system: str | None = None) -> str:
    """Single free-form call."""
    messages = []
    if system:
        messages.append(ChatMessage(role="system", content=system))
    messages.append(ChatMessage(role="user", content=prompt))
    try:
        response = await get_ai_provider().chat(messages)
    except AIProviderError as e:
        logger.error("AI generation failed: %s", e)
        raise UpstreamFailureError(f"Failed to generate content: {e}") from e
    logger.info(
        "AI call complete",
        extra={
            "model": response.model,
            "total_tokens": response.total_tokens,
            "estimated_cost_usd": str(response.estimated_cost_usd),
        },
    )
    return response.content


async def generate_structured_content(prompt: str, *, system: str | None = None) -> Any:
    """
    JSON-mode call: append the JSON-only instruction, strip fences, parse strictly.

    Raises:
        MalformedAIResponseError: the reply is not valid JSON
        UpstreamFailureError: the provider call failed
    """
    text = await generate_content(f"{prompt}\n\n{JSON_ONLY_INSTRUCTION}", system=system)
    return ai_response_validation.parse_json(text)


async def test_connection() -> bool:
    """True when the configured provider accepts its API key."""
    try:
        return await get_ai_provider().validate_key()
    except UpstreamFailureError:
        return False


# =============================================================================
# RFP parsing
# =============================================================================

RFP_PARSE_PROMPT = """You are an expert RFP (Request for Proposal) analyzer. Analyze the following RFP document and extract key information.

RFP Document:
{document_text}

Extract and structure the following information as JSON:
{{
  "title": "RFP title or project name",
  "issuingOrganization": "Organization issuing the RFP",
  "projectDescription": "Brief description of the project",
  "requirements": [
    {{"category": "Technical, Experience, Team, ...", "description": "Detailed requirement", "mandatory": true}}
  ],
  "evaluationCriteria": [
    {{"criterion": "Criterion name", "weight": "Percentage or points", "description": "How it is evaluated"}}
  ],
  "deliverables": ["Expected deliverables"],
  "timeline": {{
    "submissionDeadline": "ISO date or null",
    "projectStartDate": "ISO date or null",
    "projectEndDate": "ISO date or null",
    "keyMilestones": [{{"milestone": "Milestone name", "date": "ISO date"}}]
  }},
  "budget": {{"amount": "Amount or null", "currency": "USD, EUR, ... or null", "constraints": "Budget constraints"}},
  "contactInformation": {{"primaryContact": "Name", "email": "Email", "phone": "Phone"}},
  "additionalNotes": "Any other important information"
}}"""


async def parse_rfp_document(document_text: str) -> dict:
    """Extract the structured RFP fields from raw document text."""
    prompt = RFP_PARSE_PROMPT.format(document_text=document_text[:MAX_RFP_PROMPT_CHARS])
    result = await generate_structured_content(prompt)
    if not isinstance(result, dict):
        raise MalformedAIResponseError("RFP parse did not return a JSON object")
    return result


# =============================================================================
# Proposal generation
# =============================================================================

_SHARED_GUIDELINES = """**Critical Constraints & Guidelines:**
* **Financial Constraint:** If the RFP states a maximum budget ("not to exceed", "total value"), `investmentEstimate.high` MUST NOT exceed it; adjust scope, resources or phasing to fit. Without a stated budget, estimate from the scope.
* **Contact Extraction:** Extract the primary contact's name, department and email; use null for anything not present.
* **Resource Generation:** List the team roles the RFP requires, each with industry-standard low and high hourly rates in USD and a 2-3 sentence description of its responsibilities.
* **Date Extraction:** Extract every key date and deadline into `calendarEvents`."""

TEMPLATE_INSTRUCTIONS = {
    ProposalTemplate.STANDARD.value: """**Persona:** You are an expert proposal writer at '{company}'.
**Task:** Analyze the provided Request for Proposal (RFP) and generate a comprehensive, professional and persuasive project proposal.
**Audience:** The client who issued the RFP.
**Tone:** Professional, detailed and confident.
**Writing Style:** Each prose section has 2-4 well-developed paragraphs separated by blank lines (\\n\\n), following the Chicago Manual of Style for business writing.""",
    ProposalTemplate.CREATIVE.value: """**Persona:** You are a creative strategist and proposal writer for '{company}'.
**Task:** Analyze the provided Request for Proposal (RFP) and craft a compelling, narrative-driven project proposal.
**Audience:** The client who issued the RFP.
**Tone:** Modern, engaging and confident. Use storytelling to frame the client's problem and the proposed solution.
**Writing Style:** Dynamic language and shorter paragraphs separated by blank lines (\\n\\n), 2-4 per section, with professional grammar and punctuation.""",
    ProposalTemplate.TECHNICAL.value: """**Persona:** You are a Principal Solutions Architect at '{company}'.
**Task:** Analyze the provided Request for Proposal (RFP) and produce a technically detailed, data-driven project proposal.
**Audience:** A technical evaluator or engineering lead.
**Tone:** Precise, factual and direct. Minimize marketing language.
**Writing Style:** Appropriate technical terminology, 2-4 paragraphs per section separated by blank lines (\\n\\n). The executive summary is a high-level technical overview.""",
}

PROPOSAL_SCHEMA_PROMPT = """Generate a structured proposal with the following JSON schema:
{
  "folderName": "string - folder name derived from the project title",
  "projectName": "string - concise professional project name",
  "contactPerson": "string or null",
  "contactDepartment": "string or null",
  "contactEmail": "string or null",
  "executiveSummary": "string - 2-4 paragraphs separated by \\n\\n",
  "technicalApproach": "string - 2-4 paragraphs separated by \\n\\n",
  "resources": [
    {"role": "string", "hours": 0, "lowRate": 0, "highRate": 0, "description": "string"}
  ],
  "projectTimeline": "string - one phase per line, e.g. Phase 1: Discovery & Requirements (2-3 weeks)",
  "investmentEstimate": {
    "low": 0,
    "high": 0,
    "breakdown": [{"component": "string", "lowCost": 0, "highCost": 0}]
  },
  "valueProposition": "string - 2-4 paragraphs separated by \\n\\n",
  "questionsForClient": ["3-5 clarifying questions"],
  "insights": {
    "submissionDeadline": "YYYY-MM-DD or null",
    "keyObjectives": ["string"],
    "budget": "string or null",
    "requiredTechnologies": ["string"],
    "keyStakeholders": ["string"]
  },
  "calendarEvents": [{"title": "string", "date": "YYYY-MM-DD"}]
}"""


def _playbook_instructions(playbook: dict | None) -> str:
    """Glossary, KPIs and compliance notes from an industry playbook."""
    if not playbook:
        return ""
    lines = [f"\n\n--- INDUSTRY PLAYBOOK CONTEXT: {playbook.get('name', 'Playbook')} ---"]
    glossary = playbook.get("glossary") or []
    if glossary:
        lines.append("**Industry Glossary (Use these terms):**")
        lines.extend(f"- {g.get('term')}: {g.get('definition')}" for g in glossary)
    kpis = playbook.get("kpis") or []
    if kpis:
        lines.append("**Key Performance Indicators (Focus on these):**")
        lines.extend(f"- {kpi}" for kpi in kpis)
    compliance = playbook.get("complianceProfiles") or []
    if compliance:
        lines.append("**Compliance & Risk Profiles (Address these):**")
        lines.extend(f"- {c.get('name')}: {c.get('description')}" for c in compliance)
    return "\n".join(lines)


def build_proposal_prompt(
    rfp_data: dict,
    profile: dict,
    documents: list[dict],
    template: str = ProposalTemplate.STANDARD.value,
    playbook: dict | None = None,
) -> tuple[str, str]:
    """Return (system instruction, user prompt) for proposal generation."""
    if not ProposalTemplate.has_value(template):
        raise ValidationError(
            f"Invalid template. Must be one of: {', '.join(ProposalTemplate.values())}"
        )
    company = profile.get("company_name") or "our company"
    system = "\n\n".join(
        [
            TEMPLATE_INSTRUCTIONS[template].format(company=company),
            f"**Date Context:** The current date is {date.today().isoformat()}.",
            f"All content is written from the perspective of '{company}'.",
            _SHARED_GUIDELINES,
        ]
    ) + _playbook_instructions(playbook)

    document_lines = "\n".join(f"- {doc.get('file_type')}: {doc.get('file_name')}" for doc in documents)
    prompt = "\n\n".join(
        [
            f"RFP Requirements:\n{json.dumps(rfp_data, indent=2, default=str)}",
            f"Company Profile:\n{json.dumps(profile, indent=2, default=str)}",
            f"Company Documents:\n{document_lines or '- none'}",
            PROPOSAL_SCHEMA_PROMPT,
        ]
    )
    return system, prompt


async def generate_proposal_content(
    rfp_data: dict,
    profile: dict,
    documents: list[dict],
    template: str = ProposalTemplate.STANDARD.value,
    playbook: dict | None = None,
) -> dict:
    """
    Generate the full proposal document for an RFP.

    Raises:
        MalformedAIResponseError: reply not a JSON object or missing required sections
    """
    system, prompt = build_proposal_prompt(rfp_data, profile, documents, template, playbook)
    result = await generate_structured_content(prompt, system=system)
    if not isinstance(result, dict):
        raise MalformedAIResponseError("Proposal generation did not return a JSON object")
    missing = [key for key in PROPOSAL_REQUIRED_KEYS if key not in result]
    if missing:
        raise MalformedAIResponseError(
            f"Generated proposal is missing sections: {', '.join(missing)}"
        )
    logger.info(
        "Proposal content generated",
        extra={"template": template, "resource_count": len(result.get("resources") or [])},
    )
    return result


async def refine_proposal_section(
    section_name: str, current_content: str, improvement_goals: list[str]
) -> dict:
    goals = "\n".join(f"{i}. {goal}" for i, goal in enumerate(improvement_goals, start=1))
    prompt = f"""You are an expert proposal editor. Improve the following proposal section:

Section: {section_name}

Current Content:
{current_content}

Improvement Goals:
{goals}

Provide the improved content and explain the changes made as JSON:
{{
  "improvedContent": "The refined and improved section content",
  "changesExplanation": "Explanation of key improvements made",
  "suggestions": ["Additional suggestions for further improvement"]
}}"""
    result = await generate_structured_content(prompt)
    if not isinstance(result, dict):
        raise MalformedAIResponseError("Refinement did not return a JSON object")
    return result


# =============================================================================
# Scorecard & slideshow
# =============================================================================

SCORECARD_SYSTEM = (
    "You are an expert project analyst for '{company}'. Objectively evaluate a project "
    "proposal against the company's profile and documents, identify resource gaps and assign "
    "a Project Fit Score. One criterion MUST be named 'Resource Gap Analysis'; list roles the "
    "company does not clearly cover in its 'missingResources' array."
)

SCORECARD_SCHEMA_PROMPT = """Respond with this JSON schema:
{
  "overallFitScore": "integer 0-100, holistic fit with the company's capabilities",
  "summary": "2-3 paragraph summary of the analysis",
  "criteria": [
    {
      "name": "criterion name",
      "score": "integer 0-10",
      "reasoning": "1-2 sentence explanation",
      "missingResources": [
        {"role": "string", "hours": 0, "lowRate": 0, "highRate": 0, "projectArea": "string"}
      ]
    }
  ]
}"""


async def generate_scorecard(proposal_content: dict, profile: dict, documents: list[dict]) -> dict:
    company = profile.get("company_name") or "our company"
    document_lines = "\n".join(f"- {doc.get('file_type')}: {doc.get('file_name')}" for doc in documents)
    prompt = "\n\n".join(
        [
            f"PROPOSAL CONTENT:\n{json.dumps(proposal_content, indent=2, default=str)}",
            f"COMPANY PROFILE:\n{json.dumps(profile, indent=2, default=str)}",
            f"COMPANY DOCUMENTS:\n{document_lines or '- none'}",
            SCORECARD_SCHEMA_PROMPT,
        ]
    )
    result = await generate_structured_content(prompt, system=SCORECARD_SYSTEM.format(company=company))
    return ai_response_validation.validate_model(Scorecard, result).model_dump()


SLIDESHOW_SYSTEM = (
    "You are a presentation designer. Convert a project proposal (and its scorecard, when "
    "given) into a concise client-facing slideshow that opens with an introduction and ends "
    "with a call to action."
)

SLIDESHOW_SCHEMA_PROMPT = """Respond with a JSON array of slides:
[
  {
    "type": "title | summary | solution | investment | confidence | next_steps | key_differentiators",
    "title": "slide heading",
    "subtitle": "optional",
    "points": ["optional bullet points"],
    "steps": ["optional next steps"]
  }
]"""


async def generate_slideshow(proposal_content: dict, scorecard: dict | None = None) -> list[dict]:
    parts = [f"PROPOSAL:\n{json.dumps(proposal_content, indent=2, default=str)}"]
    if scorecard:
        parts.append(f"SCORECARD:\n{json.dumps(scorecard, indent=2, default=str)}")
    parts.append(SLIDESHOW_SCHEMA_PROMPT)
    result = await generate_structured_content("\n\n".join(parts), system=SLIDESHOW_SYSTEM)
    if not isinstance(result, list):
        raise MalformedAIResponseError("Slideshow generation did not return a JSON array")
    slides = ai_response_validation.validate_model_list(Slide, result)
    return [slide.model_dump(exclude_none=True) for slide in slides]
