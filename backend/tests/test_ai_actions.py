"""
Tests for AI-assisted document actions with a mocked provider.
"""

import json

import httpx
import pytest

from app.services.ai_action_service import ai_action_service, build_prompts, extract_content
from app.services.ai_key_service import ai_key_service
from tests.factories import auth_headers_for, create_test_document, create_test_user


def completion(text: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": text}}]})


@pytest.fixture
def provider_calls(monkeypatch):
    """Route provider traffic to a mock; tests append responses to ``replies``."""
    calls = []
    replies = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return replies.pop(0) if replies else completion("ok")

    monkeypatch.setattr(ai_action_service, "transport", httpx.MockTransport(handler))
    return calls, replies


async def test_list_actions(client, auth_headers):
    response = await client.get("/api/v1/ai/actions", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert "summarize" in data["actions"]
    assert data["providers"] == ["anthropic", "groq", "openai"]


async def test_action_without_key_is_404(client, auth_headers, provider_calls):
    calls, _ = provider_calls
    response = await client.post(
        "/api/v1/ai/actions",
        json={"action": "summarize", "provider": "groq", "title": "T", "content": "C"},
        headers=auth_headers,
    )

    assert response.status_code == 404
    assert "groq" in response.json()["detail"]
    assert calls == []


async def test_summarize_document_uses_stored_key(client, db_session, cipher, test_user, auth_headers, provider_calls):
    calls, replies = provider_calls
    replies.append(completion("  A short summary.  "))
    await ai_key_service.store_key(test_user, "openai", "sk-user-key", cipher, db_session)
    document = await create_test_document(db_session, test_user, title="Plan", content="Ship the thing.")

    response = await client.post(
        "/api/v1/ai/actions",
        json={"action": "summarize", "provider": "openai", "document_id": str(document.id)},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "action": "summarize",
        "provider": "openai",
        "result": "A short summary.",
    }

    request = calls[0]
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-user-key"
    body = json.loads(request.content)
    assert "Ship the thing." in body["messages"][1]["content"]


async def test_provider_error_is_503(client, db_session, cipher, test_user, auth_headers, provider_calls):
    _, replies = provider_calls
    replies.append(httpx.Response(500, json={"error": "boom"}))
    await ai_key_service.store_key(test_user, "groq", "gsk-key", cipher, db_session)

    response = await client.post(
        "/api/v1/ai/actions",
        json={"action": "analyze", "title": "T", "content": "C"},
        headers=auth_headers,
    )
    assert response.status_code == 503


@pytest.mark.parametrize(
    "body",
    [
        {"choices": ["not-a-dict"]},
        {"choices": [{"message": "plain string"}]},
        {"choices": [{"message": {"content": ["list"]}}]},
        ["not", "an", "object"],
    ],
)
async def test_malformed_completion_is_503(client, test_user, db_session, cipher, auth_headers, provider_calls, body):
    _, replies = provider_calls
    replies.append(httpx.Response(200, json=body))
    await ai_key_service.store_key(test_user, "groq", "gsk-key", cipher, db_session)

    response = await client.post(
        "/api/v1/ai/actions",
        json={"action": "summarize", "title": "T", "content": "C"},
        headers=auth_headers,
    )
    assert response.status_code == 503


def test_extract_content():
    assert extract_content({"choices": [{"message": {"content": "  done  "}}]}) == "done"
    assert extract_content({"choices": []}) == "No response generated"
    with pytest.raises(ValueError):
        extract_content({"choices": [None]})


async def test_cannot_run_on_invisible_document(
    client, db_session, cipher, organization, test_user, provider_calls
):
    calls, _ = provider_calls
    peer = await create_test_user(db_session, email="peer@example.com", org=organization)
    await ai_key_service.store_key(peer, "groq", "gsk-peer", cipher, db_session)
    document = await create_test_document(db_session, test_user, title="Private")

    response = await client.post(
        "/api/v1/ai/actions",
        json={"action": "summarize", "document_id": str(document.id)},
        headers=auth_headers_for(peer),
    )

    assert response.status_code == 403
    assert calls == []


def test_qa_prompt_includes_question():
    system, user = build_prompts("qa", "Handbook", "Vacation is 25 days.", "How many vacation days?")
    assert "Q&A" in system
    assert user.endswith("Question: How many vacation days?")


def test_unknown_action_gets_generic_prompt():
    system, user = build_prompts("haiku", "Title", "Body")
    assert system == "You are a helpful AI assistant for document management."
    assert user.startswith("haiku: Title")
