"""Template catalog loaded once from a static YAML data file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, TypeVar

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import CatalogError
from .model import (
    CatalogEntry,
    LengthMode,
    ModelConfig,
    OutputFormat,
    PromptConfig,
    Provider,
    SchemaPreset,
    Technique,
    UseCase,
)

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "catalog.yaml"

# Model used for a fresh session before the user picks one
DEFAULT_MODEL_CONFIG = ModelConfig(
    provider=Provider.GROQ,
    model="llama-3.3-70b-versatile",
    temperature=0.7,
    top_p=1.0,
    top_k=40,
    max_tokens=8000,
)

# Index of the length mode selected for a fresh session ("medium")
DEFAULT_LENGTH_MODE_INDEX = 1

E = TypeVar("E", bound=CatalogEntry)


class TemplateCatalog:
    """Immutable registry of use cases, techniques, length modes and output formats."""

    def __init__(
        self,
        use_cases: Sequence[UseCase],
        techniques: Sequence[Technique],
        length_modes: Sequence[LengthMode],
        output_formats: Sequence[OutputFormat],
    ) -> None:
        self.use_cases: tuple[UseCase, ...] = tuple(use_cases)
        self.techniques: tuple[Technique, ...] = tuple(techniques)
        self.length_modes: tuple[LengthMode, ...] = tuple(length_modes)
        self.output_formats: tuple[OutputFormat, ...] = tuple(output_formats)

        self._use_cases = self._index("use case", self.use_cases)
        self._techniques = self._index("technique", self.techniques)
        self._length_modes = self._index("length mode", self.length_modes)
        self._output_formats = self._index("output format", self.output_formats)

    @classmethod
    def from_yaml(cls, path: Optional[str | Path] = None) -> "TemplateCatalog":
        """Load the catalog from a YAML file (defaults to the packaged catalog)."""
        catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
        try:
            with open(catalog_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CatalogError(f"Failed to load catalog from {catalog_path}: {e}") from e

        catalog = cls.from_dict(data)
        logger.debug(
            "Loaded catalog from %s: %d use cases, %d techniques, %d length modes, %d output formats",
            catalog_path,
            len(catalog.use_cases),
            len(catalog.techniques),
            len(catalog.length_modes),
            len(catalog.output_formats),
        )
        return catalog

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TemplateCatalog":
        try:
            return cls(
                use_cases=[UseCase.model_validate(u) for u in data.get("use_cases", [])],
                techniques=[Technique.model_validate(t) for t in data.get("techniques", [])],
                length_modes=[LengthMode.model_validate(m) for m in data.get("length_modes", [])],
                output_formats=[OutputFormat.model_validate(f) for f in data.get("output_formats", [])],
            )
        except PydanticValidationError as e:
            raise CatalogError(f"Malformed catalog entry: {e}") from e

    @staticmethod
    def _index(kind: str, entries: Sequence[E]) -> dict[str, E]:
        if not entries:
            raise CatalogError(f"Catalog defines no {kind} entries")
        index: dict[str, E] = {}
        for entry in entries:
            if entry.id in index:
                raise CatalogError(f"Duplicate {kind} id '{entry.id}'")
            index[entry.id] = entry
        return index

    @staticmethod
    def _lookup(kind: str, index: dict[str, E], entry_id: str) -> E:
        try:
            return index[entry_id]
        except KeyError:
            raise CatalogError(
                f"Unknown {kind} '{entry_id}'. Available: {list(index.keys())}"
            ) from None

    def get_use_case(self, use_case_id: str) -> UseCase:
        return self._lookup("use case", self._use_cases, use_case_id)

    def get_technique(self, technique_id: str) -> Technique:
        return self._lookup("technique", self._techniques, technique_id)

    def get_length_mode(self, length_mode_id: str) -> LengthMode:
        return self._lookup("length mode", self._length_modes, length_mode_id)

    def get_output_format(self, output_format_id: str) -> OutputFormat:
        return self._lookup("output format", self._output_formats, output_format_id)

    def get_schema_preset(self, output_format_id: str, preset_id: str) -> SchemaPreset:
        output_format = self.get_output_format(output_format_id)
        for preset in output_format.presets:
            if preset.id == preset_id:
                return preset
        raise CatalogError(
            f"Unknown schema preset '{preset_id}' for output format '{output_format_id}'"
        )

    def default_config(self, llm_config: Optional[ModelConfig] = None) -> PromptConfig:
        """Build the configuration a new session starts with."""
        length_index = min(DEFAULT_LENGTH_MODE_INDEX, len(self.length_modes) - 1)
        return PromptConfig(
            use_case=self.use_cases[0],
            technique=self.techniques[0],
            length_mode=self.length_modes[length_index],
            output_format=self.output_formats[0],
            llm_config=llm_config or DEFAULT_MODEL_CONFIG,
        )

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "use_cases": [u.model_dump() for u in self.use_cases],
            "techniques": [t.model_dump() for t in self.techniques],
            "length_modes": [m.model_dump() for m in self.length_modes],
            "output_formats": [f.model_dump() for f in self.output_formats],
        }


def apply_recommended_config(config: PromptConfig) -> ModelConfig:
    """Merge the technique's and length mode's recommended parameters into the model config.

    The length mode is applied last so its token budget wins over the technique's.
    """
    llm_config = config.llm_config.with_overrides(config.technique.recommended_config)
    return llm_config.with_overrides(config.length_mode.recommended_config)


_catalog: Optional[TemplateCatalog] = None


def get_catalog() -> TemplateCatalog:
    """Get the process-wide catalog, loading it on first use."""
    global _catalog
    if _catalog is None:
        from ..config import get_settings

        _catalog = TemplateCatalog.from_yaml(get_settings().catalog_path)
    return _catalog
