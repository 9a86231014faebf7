"""Deterministic prompt assembly from a PromptConfig and its catalog templates."""

from __future__ import annotations

from typing import Sequence

from .model import Example, PromptConfig

EXAMPLES_TOKEN = "[[EXAMPLES]]"
SCHEMA_TOKEN = "[[SCHEMA]]"
CONTEXT_TOKEN = "[[CONTEXT]]"
PERSONA_TOKEN = "[[PERSONA]]"
ROLE_TOKEN = "[[ROLE]]"
CONSTRAINTS_TOKEN = "[[CONSTRAINTS]]"
GOAL_TOKEN = "[[GOAL]]"

RECOGNIZED_TOKENS = frozenset(
    {
        EXAMPLES_TOKEN,
        SCHEMA_TOKEN,
        CONTEXT_TOKEN,
        PERSONA_TOKEN,
        ROLE_TOKEN,
        CONSTRAINTS_TOKEN,
        GOAL_TOKEN,
    }
)

DEFAULT_CONTEXT = "No specific context provided."
DEFAULT_PERSONA = "assistant"
DEFAULT_CONSTRAINTS = "None"
DEFAULT_GOAL = "Complete the task effectively"

SECTION_SEPARATOR = "\n\n"


def render_examples(examples: Sequence[Example]) -> str:
    """Render few-shot examples as numbered Input/Output blocks."""
    return "\n\n".join(
        f"Example {i}:\nInput: {ex.input}\nOutput: {ex.output}"
        for i, ex in enumerate(examples, 1)
    )


def resolve_schema(config: PromptConfig) -> str:
    """Pick the schema text for [[SCHEMA]].

    A user schema wins for the json format or a schema-capable technique;
    otherwise the output format's example schema is used.
    """
    schema = config.output_schema
    if schema and config.output_format.id == "json":
        return schema
    if schema and config.technique.supports_schema:
        return schema
    return config.output_format.example_schema or ""


def substitute_first(text: str, token: str, value: str) -> str:
    if token not in RECOGNIZED_TOKENS:
        raise ValueError(f"Unrecognized placeholder token {token!r}")
    return text.replace(token, value, 1)


def substitute_all(text: str, token: str, value: str) -> str:
    if token not in RECOGNIZED_TOKENS:
        raise ValueError(f"Unrecognized placeholder token {token!r}")
    return text.replace(token, value)


def compile_prompt(config: PromptConfig) -> str:
    """Assemble the final prompt string for a configuration.

    Pure and total: unknown bracket tokens are left verbatim and templates
    without placeholders pass through unchanged. Passes run in a fixed order
    (examples, schema, then the named fields) and each pass only touches its
    own token.
    """
    prompt = SECTION_SEPARATOR.join(
        [
            config.use_case.template,
            config.technique.template,
            config.length_mode.template,
            config.output_format.template,
        ]
    )

    if config.technique.supports_examples and config.examples:
        examples_text = render_examples(config.examples)
    else:
        examples_text = ""
    prompt = substitute_first(prompt, EXAMPLES_TOKEN, examples_text)

    prompt = substitute_first(prompt, SCHEMA_TOKEN, resolve_schema(config))

    persona = config.persona or DEFAULT_PERSONA
    prompt = substitute_all(prompt, CONTEXT_TOKEN, config.context or DEFAULT_CONTEXT)
    prompt = substitute_all(prompt, PERSONA_TOKEN, persona)
    prompt = substitute_all(prompt, ROLE_TOKEN, persona)
    prompt = substitute_all(prompt, CONSTRAINTS_TOKEN, config.constraints or DEFAULT_CONSTRAINTS)
    prompt = substitute_all(prompt, GOAL_TOKEN, config.goal or DEFAULT_GOAL)

    return prompt.strip()
