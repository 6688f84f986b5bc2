"""
AI-assisted document actions (summarize, analyze, translate...).

Every provider is reached through its OpenAI-compatible chat completions
endpoint using the caller's own stored key.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple
from uuid import UUID

import httpx
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.core.config import settings
from app.models.user import User
from app.schemas.ai_action import AiActionRequest
from app.services.access_service import AccessService
from app.services.ai_key_service import ai_key_service
from app.services.document_service import document_service
from app.services.role_authority import Action, Resource
from app.services.secret_cipher import SecretCipher
from app.utils.exceptions import AIProviderError, NotFoundError, PermissionDeniedError, ValidationError


@dataclass(frozen=True)
class ProviderConfig:
    base_url: str
    model: str


PROVIDERS = {
    "groq": ProviderConfig("https://api.groq.com/openai/v1", "llama3-8b-8192"),
    "openai": ProviderConfig("https://api.openai.com/v1", "gpt-3.5-turbo"),
    "anthropic": ProviderConfig("https://api.anthropic.com/v1", "claude-3-haiku-20240307"),
}

SUPPORTED_ACTIONS = ("summarize", "analyze", "improve", "generate", "extract_keywords", "translate", "qa")


def build_prompts(action: str, title: str, content: str, question: Optional[str] = None) -> Tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` for an action; unknown actions get a generic prompt."""
    if action == "summarize":
        return (
            "You are an expert document summarizer. Provide concise, accurate summaries.",
            f"Summarize this document:\n\nTitle: {title}\n\nContent:\n{content}",
        )
    if action == "analyze":
        return (
            "You are a document analyst. Provide structured analysis including themes, tone, and recommendations.",
            f"Analyze this document:\n\nTitle: {title}\n\nContent:\n{content}\n\n"
            "Provide:\n1. Document type and purpose\n2. Key topics\n3. Tone assessment\n4. Recommendations",
        )
    if action == "improve":
        return (
            "You are a professional editor. Improve the document while keeping the original intent.",
            f"Improve this document:\n\nTitle: {title}\n\nContent:\n{content}\n\n"
            "Provide improved title and content with better clarity and structure.",
        )
    if action == "generate":
        return (
            "You are a content generator. Create professional document content based on the given topic.",
            f"Generate document content about: {title}\n\nContext: {content}",
        )
    if action == "extract_keywords":
        return (
            "You are a keyword extraction specialist. Identify the most important terms, phrases, and concepts.",
            f"Extract the key terms and phrases from this document:\n\nTitle: {title}\n\nContent:\n{content}\n\n"
            "Provide:\n1. Primary keywords (most important)\n2. Secondary keywords\n"
            "3. Named entities (people, places, organizations)\n4. Technical terms",
        )
    if action == "translate":
        return (
            "You are a professional translator. Translate the document accurately while preserving meaning and tone.",
            f"Translate this document to Spanish (or the language requested in the content):\n\n"
            f"Title: {title}\n\nContent:\n{content}",
        )
    if action == "qa":
        return (
            "You are a document Q&A expert. Answer questions about the document accurately based only on its "
            "content. If the answer is not in the document, say so.",
            f"Document Title: {title}\n\nDocument Content:\n{content}\n\n"
            f"Question: {question or 'What is this document about?'}",
        )
    return (
        "You are a helpful AI assistant for document management.",
        f"{action}: {title}\n\n{content}",
    )


def extract_content(body: Any) -> str:
    """Pull the first choice's text out of a chat completion; malformed bodies raise ``ValueError``."""
    if not isinstance(body, dict):
        raise ValueError("Completion body is not an object")
    choices = body.get("choices") or []
    if not choices:
        return "No response generated"
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise ValueError("Completion choices are malformed")
    message = choices[0].get("message") or {}
    if not isinstance(message, dict):
        raise ValueError("Completion message is malformed")
    content = message.get("content") or ""
    if not isinstance(content, str):
        raise ValueError("Completion content is not text")
    return content.strip() or "No response generated"


class AiActionService:
    """Runs AI actions against the caller's configured provider."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True
    )
    async def _chat_completion(self, config: ProviderConfig, api_key: str, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": settings.AI_TEMPERATURE,
            "max_tokens": settings.AI_MAX_TOKENS,
        }
        headers = {"Authorization": f"Bearer {api_key}"}

        async with httpx.AsyncClient(timeout=settings.AI_REQUEST_TIMEOUT, transport=self.transport) as client:
            response = await client.post(f"{config.base_url}/chat/completions", json=payload, headers=headers)
            response.raise_for_status()
            body = response.json()

        return extract_content(body)

    async def run(
        self,
        actor: User,
        request: AiActionRequest,
        cipher: SecretCipher,
        access: AccessService,
        db: AsyncSession,
    ) -> str:
        config = PROVIDERS.get(request.provider)
        if config is None:
            raise ValidationError(f"Unsupported provider: {request.provider}", field="provider")

        await access.require(actor, Action.READ, Resource.AI_ACTION, resource_org_id=actor.org_id)

        title = request.title or ""
        content = request.content or ""
        if request.document_id is not None:
            title, content = await self._document_text(actor, request.document_id, access, db)

        api_key = await ai_key_service.get_usable_key(actor.id, request.provider, cipher, db)
        if api_key is None:
            raise NotFoundError(
                "AI key",
                detail=f"No usable {request.provider} API key found. Add or re-enter one in Settings.",
            )

        system_prompt, user_prompt = build_prompts(request.action, title, content, request.question)
        try:
            result = await self._chat_completion(config, api_key, system_prompt, user_prompt)
        except httpx.HTTPStatusError as e:
            logger.error(f"{request.provider} API error: {e.response.status_code}")
            raise AIProviderError(f"{request.provider} returned {e.response.status_code}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{request.provider} request failed: {e}")
            raise AIProviderError(f"{request.provider} request failed")

        logger.info(f"AI action {request.action} via {request.provider} for user {actor.id}")
        return result

    async def _document_text(
        self,
        actor: User,
        document_id: UUID,
        access: AccessService,
        db: AsyncSession,
    ) -> Tuple[str, str]:
        document = await document_service.get_by_id(document_id, db)
        await document_service.ensure_visible(actor, document, access)
        if document.is_password_protected and str(document.owner_id) != str(actor.id):
            raise PermissionDeniedError("This document is password protected", rule="document_password")
        return document.title, document.content or ""


ai_action_service = AiActionService()
