import json
import types

import pytest
from conftest import make_expert

from core import ai_agent
from core.errors import AIServiceError, ValidationError
from core.models import Spotlight, SubscriptionTier


class FakeModel:
    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return types.SimpleNamespace(text=reply)


def _use_model(monkeypatch, model):
    kwargs_seen = {}

    def fake_model(**kwargs):
        kwargs_seen.update(kwargs)
        return model

    monkeypatch.setattr(ai_agent, "_model", fake_model)
    return kwargs_seen


def test_model_requires_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(AIServiceError, match="not configured"):
        ai_agent._model()


def test_missing_api_key_is_a_service_error_for_every_helper(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    experts = [make_expert("Reviewed", bio="A bio.")]

    with pytest.raises(AIServiceError):
        ai_agent.generate_bio("Aris", "Science Fiction")
    with pytest.raises(AIServiceError):
        ai_agent.get_admin_insights("How many experts?", experts)
    with pytest.raises(AIServiceError):
        ai_agent.scan_content_for_issues(experts)


def test_model_configures_client(monkeypatch):
    calls = {}
    monkeypatch.setenv("GEMINI_API_KEY", "key-123")
    monkeypatch.setattr(ai_agent.genai, "configure", lambda api_key: calls.setdefault("key", api_key))
    monkeypatch.setattr(ai_agent.genai, "GenerativeModel", lambda name, **kw: ("model", name, kw))

    model = ai_agent._model(generation_config={"response_mime_type": "application/json"})

    assert calls["key"] == "key-123"
    assert model[1] == ai_agent.GEMINI_MODEL
    assert model[2]["generation_config"]["response_mime_type"] == "application/json"


def test_generate_bio(monkeypatch):
    model = FakeModel(["  Aris is a collector of classic science fiction.  "])
    _use_model(monkeypatch, model)

    bio = ai_agent.generate_bio("Aris", "Science Fiction")

    assert bio == "Aris is a collector of classic science fiction."
    assert "Aris" in model.prompts[0] and "Science Fiction" in model.prompts[0]


def test_generate_bio_needs_name_and_genre(monkeypatch):
    _use_model(monkeypatch, FakeModel([]))
    with pytest.raises(ValidationError):
        ai_agent.generate_bio("", "History")


def test_generate_bio_service_failure(monkeypatch):
    _use_model(monkeypatch, FakeModel([ConnectionError("quota")]))
    with pytest.raises(AIServiceError):
        ai_agent.generate_bio("Aris", "History")


def test_admin_insights_uses_summary_only(monkeypatch):
    model = FakeModel(["There is 1 premium expert."])
    _use_model(monkeypatch, model)
    experts = [
        make_expert("Secret Name", tier=SubscriptionTier.PREMIUM, bio="private bio text"),
        make_expert("Another"),
    ]

    answer = ai_agent.get_admin_insights("How many premium experts?", experts)

    assert answer == "There is 1 premium expert."
    prompt = model.prompts[0]
    assert '"premium_experts": 1' in prompt
    assert "Secret Name" not in prompt
    assert "private bio text" not in prompt


def test_admin_insights_rejects_empty_query(monkeypatch):
    _use_model(monkeypatch, FakeModel([]))
    with pytest.raises(ValidationError):
        ai_agent.get_admin_insights("   ", [])


def test_scan_content_flags_and_skips_bad_answers(monkeypatch):
    expert = make_expert(
        "Writer",
        bio="A hateful bio",
        spotlights=[Spotlight(id="s1", title="Nice title", content="Nice content")],
    )
    model = FakeModel([
        json.dumps({"isViolation": True, "reason": "Hate speech"}),
        "not json at all",
        ConnectionError("timeout"),
    ])
    kwargs_seen = _use_model(monkeypatch, model)

    alerts = ai_agent.scan_content_for_issues([expert])

    assert kwargs_seen["generation_config"]["response_mime_type"] == "application/json"
    assert len(model.prompts) == 3
    assert len(alerts) == 1
    assert alerts[0].content_type == "bio"
    assert alerts[0].reason == "Hate speech"
    assert alerts[0].expert_name == "Writer"


def test_scan_content_no_violations(monkeypatch):
    expert = make_expert("Writer", bio="Lovely books")
    _use_model(monkeypatch, FakeModel([json.dumps({"isViolation": False, "reason": ""})]))
    assert ai_agent.scan_content_for_issues([expert]) == []
