"""Token pricing for completion usage records.

Prices are USD per 1K tokens. Costs are an estimate for the usage dashboard,
not a billing source of truth.
"""

from typing import Any, Dict, Optional, Tuple, Union

PricingEntry = Union[Tuple[float, float], Dict[str, Any]]

# (provider, model) -> (input_per_1k, output_per_1k) or a tiered dict:
#   {"type": "tiered", "input_low", "input_high", "output_low", "output_high", "tier_threshold"}
PRICING_TABLE: Dict[Tuple[str, str], PricingEntry] = {
    # OpenAI
    ("openai", "gpt-4o"): (0.0025, 0.01),
    ("openai", "gpt-4o-mini"): (0.00015, 0.0006),
    ("openai", "gpt-4-turbo"): (0.01, 0.03),
    ("openai", "gpt-4"): (0.03, 0.06),
    ("openai", "gpt-3.5-turbo"): (0.0005, 0.0015),
    ("openai", "gpt-4.1"): (0.002, 0.008),
    ("openai", "gpt-4.1-mini"): (0.0004, 0.0016),

    # Groq
    ("groq", "llama-3.3-70b-versatile"): (0.00059, 0.00079),
    ("groq", "llama-3.1-8b-instant"): (0.00005, 0.00008),
    ("groq", "mixtral-8x7b-32768"): (0.00024, 0.00024),
    ("groq", "gemma2-9b-it"): (0.0002, 0.0002),

    # Anthropic
    ("anthropic", "claude-3-5-sonnet-20241022"): (0.003, 0.015),
    ("anthropic", "claude-3-5-haiku-20241022"): (0.0008, 0.004),
    ("anthropic", "claude-3-opus-20240229"): (0.015, 0.075),
    ("anthropic", "claude-3-haiku-20240307"): (0.00025, 0.00125),

    # Google Gemini
    ("gemini", "gemini-1.5-pro"): (0.00125, 0.005),
    ("gemini", "gemini-1.5-flash"): (0.000075, 0.0003),
    ("gemini", "gemini-2.0-flash"): (0.0001, 0.0004),
    ("gemini", "gemini-2.5-flash"): (0.0003, 0.0025),
    ("gemini", "gemini-2.5-pro"): {
        "type": "tiered",
        "input_low": 0.00125,
        "input_high": 0.0025,
        "output_low": 0.01,
        "output_high": 0.015,
        "tier_threshold": 200000,
    },
}


class TokenPricingService:
    """Looks up per-model prices and turns token counts into a cost."""

    def __init__(self, pricing_table: Optional[Dict[Tuple[str, str], PricingEntry]] = None):
        self.pricing_table: Dict[Tuple[str, str], PricingEntry] = pricing_table or PRICING_TABLE

    def _entry(self, provider: str, model: str) -> Optional[PricingEntry]:
        provider_norm = self._normalize_provider(provider)
        model_norm = model.lower().strip()

        entry = self.pricing_table.get((provider_norm, model_norm))
        if entry is None:
            # Fall back to the base model, e.g. gpt-4o from gpt-4o-2024-08-06
            parts = model_norm.split("-")
            if len(parts) >= 2:
                entry = self.pricing_table.get((provider_norm, "-".join(parts[0:2])))
        return entry

    def get_pricing(self, provider: str, model: str) -> Optional[Tuple[float, float]]:
        """Return (input_per_1k, output_per_1k), using the low tier for tiered models."""
        entry = self._entry(provider, model)
        if entry is None:
            return None
        if isinstance(entry, tuple):
            return (float(entry[0]), float(entry[1]))
        if entry.get("type") == "tiered":
            return (float(entry["input_low"]), float(entry["output_low"]))
        return None

    def calculate_cost(
        self,
        provider: Optional[str],
        model: Optional[str],
        tokens_in: Optional[int],
        tokens_out: Optional[int],
    ) -> Optional[float]:
        """Cost in USD, or None if the model is unpriced or inputs are missing."""
        if not provider or not model or tokens_in is None or tokens_out is None:
            return None

        entry = self._entry(provider, model)
        if entry is None:
            return None

        if isinstance(entry, tuple):
            input_per_1k, output_per_1k = entry
        elif entry.get("type") == "tiered":
            high = tokens_in > entry.get("tier_threshold", float("inf"))
            input_per_1k = entry["input_high" if high else "input_low"]
            output_per_1k = entry["output_high" if high else "output_low"]
        else:
            return None

        cost = (tokens_in / 1000) * input_per_1k + (tokens_out / 1000) * output_per_1k
        return round(cost, 8)

    def _normalize_provider(self, provider: str) -> str:
        provider_lower = str(getattr(provider, "value", provider)).lower()
        if "google" in provider_lower or "gemini" in provider_lower:
            return "gemini"
        if "claude" in provider_lower:
            return "anthropic"
        return provider_lower


_pricing_service: Optional[TokenPricingService] = None


def get_pricing_service() -> TokenPricingService:
    """Get the global token pricing service instance."""
    global _pricing_service
    if _pricing_service is None:
        _pricing_service = TokenPricingService()
    return _pricing_service
