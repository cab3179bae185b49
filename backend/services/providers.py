"""AI Provider Registry.

One descriptor per supported provider (OpenAI, Anthropic, Google Gemini,
Mistral). Each descriptor knows how to recognise its own key shape and how
to build the lightweight authenticated request used to check a key.

The registry is built once at startup and is read-only afterwards, so it
can be shared across any number of concurrent validations.

SECURITY: Descriptors only place the key into the outbound request.
They never log it.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

from app.config import Settings, get_settings

AUTO_HINT = "auto"


class ProviderId(str, Enum):
    """Supported AI providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    MISTRAL = "mistral"


@dataclass(frozen=True)
class ValidationRequest:
    """Outbound request used to check a single key."""

    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] = field(default_factory=dict)
    body: Optional[dict[str, Any]] = None

    @property
    def method(self) -> str:
        return "POST" if self.body is not None else "GET"


class BaseProvider(ABC):
    """Abstract provider descriptor."""

    id: ProviderId
    key_pattern: re.Pattern[str]

    def matches(self, key: str) -> bool:
        """Check whether the key has this provider's shape."""
        return self.key_pattern.fullmatch(key) is not None

    @abstractmethod
    def build_request(self, key: str) -> ValidationRequest:
        """Build the validation request for a key."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id.value}>"


class OpenAIProvider(BaseProvider):
    """OpenAI - lists models with a Bearer token."""

    id = ProviderId.OPENAI
    key_pattern = re.compile(r"sk-[A-Za-z0-9]{20,}T3BlbkFJ[A-Za-z0-9]{20,}")
    url = "https://api.openai.com/v1/models"

    def build_request(self, key: str) -> ValidationRequest:
        return ValidationRequest(
            url=self.url,
            headers={"Authorization": f"Bearer {key}"},
        )


class AnthropicProvider(BaseProvider):
    """Anthropic - requests a one-token completion.

    Anthropic has no cheap GET that every key tier can call, so a minimal
    messages request is sent instead.
    """

    id = ProviderId.ANTHROPIC
    key_pattern = re.compile(r"sk-ant-api[0-9]{2}-[A-Za-z0-9_\-]{95}")
    url = "https://api.anthropic.com/v1/messages"

    def __init__(
        self,
        api_version: str = "2023-06-01",
        model: str = "claude-3-haiku-20240307",
    ) -> None:
        self.api_version = api_version
        self.model = model

    def build_request(self, key: str) -> ValidationRequest:
        return ValidationRequest(
            url=self.url,
            headers={
                "x-api-key": key,
                "anthropic-version": self.api_version,
                "content-type": "application/json",
            },
            body={
                "model": self.model,
                "max_tokens": 1,
                "messages": [{"role": "user", "content": "."}],
            },
        )


class GoogleProvider(BaseProvider):
    """Google Gemini - the key itself is passed in the query string."""

    id = ProviderId.GOOGLE
    key_pattern = re.compile(r"AIzaSy[A-Za-z0-9_\-]{33}")
    url = "https://generativelanguage.googleapis.com/v1beta/models"

    def build_request(self, key: str) -> ValidationRequest:
        return ValidationRequest(url=self.url, params={"key": key})


class MistralProvider(BaseProvider):
    """Mistral - lists models with a Bearer token."""

    id = ProviderId.MISTRAL
    key_pattern = re.compile(r"[A-Za-z0-9]{32}")
    url = "https://api.mistral.ai/v1/models"

    def build_request(self, key: str) -> ValidationRequest:
        return ValidationRequest(
            url=self.url,
            headers={"Authorization": f"Bearer {key}"},
        )


class ProviderRegistry:
    """Immutable, ordered collection of provider descriptors."""

    # Keys that match no pattern but carry this prefix are assumed to be OpenAI
    LEGACY_OPENAI_PREFIX = "sk-"

    def __init__(self, providers: Iterable[BaseProvider]) -> None:
        self._providers: tuple[BaseProvider, ...] = tuple(providers)
        self._by_id: Mapping[str, BaseProvider] = MappingProxyType(
            {p.id.value: p for p in self._providers}
        )

    def __iter__(self):
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def ids(self) -> list[str]:
        """Provider ids in match order."""
        return [p.id.value for p in self._providers]

    def get(self, name: str) -> Optional[BaseProvider]:
        """Look up a provider by id."""
        return self._by_id.get(name)

    def identify(self, key: str, hint: Optional[str] = None) -> Optional[BaseProvider]:
        """Resolve the provider for a key.

        A known, non-"auto" hint wins outright, even when the key does not
        look like that provider's keys. Otherwise patterns are tried in
        registry order, then the legacy ``sk-`` fallback.
        """
        if hint and hint != AUTO_HINT:
            hinted = self.get(hint)
            if hinted is not None:
                return hinted

        for provider in self._providers:
            if provider.matches(key):
                return provider

        if key.startswith(self.LEGACY_OPENAI_PREFIX):
            return self._by_id.get(ProviderId.OPENAI.value)
        return None


def build_registry(settings: Optional[Settings] = None) -> ProviderRegistry:
    """Build the default registry (openai, anthropic, google, mistral)."""
    settings = settings or get_settings()
    return ProviderRegistry(
        [
            OpenAIProvider(),
            AnthropicProvider(
                api_version=settings.anthropic_version,
                model=settings.anthropic_validation_model,
            ),
            GoogleProvider(),
            MistralProvider(),
        ]
    )
