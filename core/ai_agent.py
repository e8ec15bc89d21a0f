"""
Gemini-backed helpers: profile bio drafts, admin Q&A over platform stats, and a
community-guideline scan of bios and spotlights.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Iterable, List

import google.generativeai as genai

from core.errors import AIServiceError, ValidationError
from core.listing import platform_summary
from core.models import Expert, ModerationAlert

log = logging.getLogger(__name__)

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

COMMUNITY_GUIDELINES = """
- Be Respectful. Be Kind.
- Zero-tolerance for hate speech, harassment, or discriminatory content.
- No offensive content based on race, color, ethnic origin, religion, political affiliation, sexual orientation, gender identity, minority status, nationality, or disability.
- No abusive, threatening, or hostile content.
"""


def _model(**kwargs):
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        log.error("GEMINI_API_KEY is not set")
        raise AIServiceError("AI service is not configured.")
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(GEMINI_MODEL, **kwargs)


def generate_bio(name: str, genre: str) -> str:
    """Short third-person bio draft the expert can edit before saving."""
    if not (name or "").strip() or not (genre or "").strip():
        raise ValidationError("Please enter a name and select a genre first.")
    prompt = (
        f"Write a short, engaging professional biography (2-3 sentences, under 350 characters) "
        f"for a rare book expert named {name.strip()} who specializes in {genre}. "
        f"Write in the third person. Return plain text only."
    )
    model = _model()
    try:
        resp = model.generate_content(prompt)
    except Exception as exc:
        log.error("Bio generation failed", extra={"error": str(exc)})
        raise AIServiceError("Could not generate bio. Please try again or write your own.") from exc
    return (resp.text or "").strip()


def get_admin_insights(query: str, experts: Iterable[Expert]) -> str:
    """
    Answer an admin question using only the aggregated platform summary,
    never raw expert records.
    """
    query = (query or "").strip()
    if not query:
        raise ValidationError("Query is required for insights.")

    summary = platform_summary(experts).as_dict()
    prompt = f"""
You are an AI Admin Agent for a platform called BookDocker GO2.
You will be given a natural language query from an administrator and a pre-calculated JSON summary of the platform's data.
Your task is to analyze ONLY THIS SUMMARY to provide a concise, accurate answer to the query.
Do not provide any information that cannot be derived from the provided summary.
The output should be a single string of plain text.

QUERY:
"{query}"

PLATFORM DATA SUMMARY:
{json.dumps(summary, indent=2)}
"""
    model = _model()
    try:
        resp = model.generate_content(prompt)
    except Exception as exc:
        log.error("Admin insight failed", extra={"query": query, "error": str(exc)})
        raise AIServiceError("The AI agent failed to generate an insight.") from exc
    return (resp.text or "").strip()


def _content_items(expert: Expert):
    if expert.bio:
        yield "bio", expert.bio
    for spotlight in expert.spotlights:
        if spotlight.title:
            yield "spotlight_title", spotlight.title
        if spotlight.content:
            yield "spotlight_content", spotlight.content


def _review_prompt(content: str) -> str:
    return f"""
Review the following user-generated content based on our community guidelines.
Determine if it violates any rules and provide a reason if it does.
Respond with a JSON object of the form {{"isViolation": boolean, "reason": string}}.
The reason must be an empty string when there is no violation.

COMMUNITY GUIDELINES:
{COMMUNITY_GUIDELINES}

CONTENT TO REVIEW:
"{content}"
"""


def scan_content_for_issues(experts: Iterable[Expert]) -> List[ModerationAlert]:
    """
    Review every bio and spotlight. Items the model cannot answer for, or answers
    with unparseable JSON, are logged and skipped.
    """
    model = _model(generation_config={"response_mime_type": "application/json"})
    alerts: List[ModerationAlert] = []

    for expert in experts:
        for content_type, content in _content_items(expert):
            try:
                resp = model.generate_content(_review_prompt(content))
            except Exception as exc:
                log.error("Moderation scan failed", extra={"expert_id": expert.id, "error": str(exc)})
                continue
            try:
                result = json.loads((resp.text or "").strip())
            except ValueError:
                log.warning(
                    "Unparseable moderation response",
                    extra={"expert_id": expert.id, "response": resp.text},
                )
                continue
            if isinstance(result, dict) and result.get("isViolation"):
                alerts.append(
                    ModerationAlert(
                        expert_id=expert.id,
                        expert_name=expert.name,
                        content_type=content_type,
                        flagged_content=content,
                        reason=str(result.get("reason") or ""),
                    )
                )
    return alerts


__all__ = [
    "GEMINI_MODEL",
    "COMMUNITY_GUIDELINES",
    "generate_bio",
    "get_admin_insights",
    "scan_content_for_issues",
]
