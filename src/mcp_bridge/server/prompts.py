"""Prompt templates: reusable user messages with argument slots."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel

from mcp_bridge.errors import InvalidInput, NotFound
from mcp_bridge.types import ObjectSchema, PrimitiveType, PropertySchema

from .validation import build_model, validate


@dataclass(frozen=True)
class RenderedPrompt:
    description: str
    messages: tuple[tuple[str, str], ...]  # (role, text)


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    description: str
    arguments: ObjectSchema
    render: Callable[[Any], str]
    model: type[BaseModel] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "model", build_model(self.name, self.arguments))

    def instantiate(self, arguments: Optional[Mapping[str, str]]) -> RenderedPrompt:
        """
        Raises:
            InvalidInput: when arguments violate the template's schema.
        """
        args = validate(self.model, self.arguments, dict(arguments or {}))
        return RenderedPrompt(
            description=self.description, messages=(("user", self.render(args)),)
        )


def _required_text(name: str, value: str) -> str:
    if not value.strip():
        raise InvalidInput([f"{name}: must not be empty"])
    return value.strip()


FOCUS_INSTRUCTIONS = {
    "all": (
        "- Check for bugs and logical errors\n"
        "- Evaluate security vulnerabilities\n"
        "- Assess performance implications\n"
        "- Review code readability and style"
    ),
    "security": (
        "- Identify injection vulnerabilities\n"
        "- Check for improper authentication/authorization\n"
        "- Look for data exposure risks\n"
        "- Assess input validation"
    ),
    "performance": (
        "- Identify bottlenecks and O(n^2) or worse algorithms\n"
        "- Check for unnecessary re-renders or recomputations\n"
        "- Assess memory usage patterns\n"
        "- Look for missing caching opportunities"
    ),
    "readability": (
        "- Evaluate variable and function naming\n"
        "- Check for code duplication (DRY principle)\n"
        "- Assess modularity and single responsibility\n"
        "- Review comments and documentation"
    ),
}

AUDIENCES = {
    "beginner": "someone completely new to programming",
    "intermediate": "a developer with 1-3 years of experience",
    "expert": "a senior engineer",
}

LEVEL_GUIDANCE = {
    "beginner": (
        "- Use simple analogies from everyday life\n"
        "- Avoid jargon (or define it when necessary)\n"
        "- Include a simple code example if applicable\n"
        "- Keep it under 300 words"
    ),
    "intermediate": (
        "- Connect it to concepts the reader likely already knows\n"
        "- Include a practical code example\n"
        "- Mention common pitfalls\n"
        "- Around 400 words"
    ),
    "expert": (
        "- Dive into implementation details and trade-offs\n"
        "- Compare with alternative approaches\n"
        "- Discuss edge cases and performance implications\n"
        "- Include advanced usage patterns"
    ),
}


def render_code_review(args: Any) -> str:
    language = _required_text("language", args.language)
    focus = args.focus or "all"
    return f"""You are an expert {language} code reviewer. Please review the code I provide with a focus on {focus}.

For your review, please:
{FOCUS_INSTRUCTIONS[focus]}

Structure your response as:
1. **Summary** - overall assessment (1-2 sentences)
2. **Issues Found** - list each issue with severity (critical / warning / suggestion)
3. **Code Examples** - show fixed code where applicable
4. **Positive Highlights** - what's done well

Please wait for me to share the code."""


def render_explain_concept(args: Any) -> str:
    concept = _required_text("concept", args.concept)
    level = args.level or "beginner"
    return f"""Explain "{concept}" to {AUDIENCES[level]}.

Your explanation should:
{LEVEL_GUIDANCE[level]}"""


CODE_REVIEW = PromptTemplate(
    name="code-review",
    description="Generate a structured code review prompt for a given language and code snippet.",
    arguments=ObjectSchema(
        properties={
            "language": PropertySchema(
                PrimitiveType.STRING, "Programming language (e.g. TypeScript, Python, Go)"
            ),
            "focus": PropertySchema(
                PrimitiveType.STRING,
                "Review focus area: security | performance | readability | all",
                enum=tuple(FOCUS_INSTRUCTIONS),
            ),
        },
        required=frozenset({"language"}),
    ),
    render=render_code_review,
)

EXPLAIN_CONCEPT = PromptTemplate(
    name="explain-concept",
    description="Generate a prompt asking the AI to explain a technical concept at a specific level.",
    arguments=ObjectSchema(
        properties={
            "concept": PropertySchema(
                PrimitiveType.STRING, "The technical concept to explain (e.g. 'MCP Resources')"
            ),
            "level": PropertySchema(
                PrimitiveType.STRING,
                "Explanation level: beginner | intermediate | expert",
                enum=tuple(AUDIENCES),
            ),
        },
        required=frozenset({"concept"}),
    ),
    render=render_explain_concept,
)

PROMPTS: tuple[PromptTemplate, ...] = (CODE_REVIEW, EXPLAIN_CONCEPT)


def find_prompt(name: str, prompts: tuple[PromptTemplate, ...] = PROMPTS) -> PromptTemplate:
    """
    Raises:
        NotFound: for an unknown prompt name.
    """
    for prompt in prompts:
        if prompt.name == name:
            return prompt
    raise NotFound(f"Unknown prompt: {name}", name)
