"""Exception hierarchy for the prompt engine."""

from __future__ import annotations

from typing import Optional


class PromptCopilotError(Exception):
    """Base class for all engine errors."""
    pass


class CatalogError(PromptCopilotError):
    """Raised when a catalog entry is unknown or the catalog file is malformed."""
    pass


class ValidationError(PromptCopilotError):
    """Raised when user-supplied configuration is out of bounds."""
    pass


class MissingCredentialError(ValidationError):
    """Raised when the credential for a provider is absent."""

    def __init__(self, provider: str, operation: Optional[str] = None) -> None:
        self.provider = provider
        self.operation = operation
        label = provider.capitalize()
        if operation:
            message = f"{label} API key is required for {operation}. Please add it in API Settings."
        else:
            message = f"{label} API key is required. Please add it in API Settings."
        super().__init__(message)


class UpstreamError(PromptCopilotError):
    """Raised when a call to a completion provider fails."""

    def __init__(self, message: str, provider: Optional[str] = None, operation: Optional[str] = None) -> None:
        self.provider = provider
        self.operation = operation
        super().__init__(message)


class ScoreParseError(UpstreamError):
    """Raised when the scoring model does not return valid score JSON."""
    pass


class ChainExecutionError(PromptCopilotError):
    """Raised when a chain step fails; the chain is aborted at that step."""

    def __init__(
        self,
        step_index: int,
        step_name: str,
        outputs: list[str],
        cause: BaseException,
    ) -> None:
        self.step_index = step_index
        self.step_name = step_name
        self.outputs = list(outputs)
        self.cause = cause
        super().__init__(f"Chain failed at step {step_index} ({step_name}): {cause}")


class GenerationInProgressError(PromptCopilotError):
    """Raised when a generation action is started while another is in flight."""
    pass
