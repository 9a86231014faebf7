"""Credential set and the strategy that resolves it for a request."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict

from ..model import Provider

if TYPE_CHECKING:
    from ...config import Settings


_KEY_FIELDS = {
    Provider.OPENAI: "openai_key",
    Provider.GROQ: "groq_key",
    Provider.ANTHROPIC: "anthropic_key",
    Provider.GEMINI: "google_key",
}


class Credentials(BaseModel):
    """Optional API keys keyed by provider. Read-only to the engine."""

    model_config = ConfigDict(frozen=True)

    openai_key: Optional[str] = None
    groq_key: Optional[str] = None
    anthropic_key: Optional[str] = None
    google_key: Optional[str] = None

    def key_for(self, provider: Provider | str) -> Optional[str]:
        """Return the key for a provider, treating blank keys as absent."""
        key = getattr(self, _KEY_FIELDS[Provider(provider)])
        return key or None

    def has(self, provider: Provider | str) -> bool:
        return self.key_for(provider) is not None


def resolve_credentials(
    settings: "Settings",
    custom: Optional[Credentials] = None,
    use_custom_keys: bool = False,
) -> Credentials:
    """Pick the credential set for a request.

    With custom keys enabled only the caller-supplied keys are used; otherwise
    the server-configured keys apply.
    """
    if use_custom_keys:
        return custom or Credentials()

    return Credentials(
        openai_key=settings.openai_api_key or None,
        groq_key=settings.groq_api_key or None,
        anthropic_key=settings.anthropic_api_key or None,
        google_key=settings.gemini_api_key or None,
    )
