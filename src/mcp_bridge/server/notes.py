"""
Read-only learning notes exposed as MCP resources.

URIs:
    notes://all    summary of every note
    notes://<id>   one note
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from mcp_bridge.errors import NotFound

MIME_TYPE = "text/plain"
ALL_NOTES_URI = "notes://all"

_NOTE_URI = re.compile(r"^notes://(\d+)$")


@dataclass(frozen=True)
class Note:
    id: int
    title: str
    content: str
    created_at: str
    tags: tuple[str, ...]


@dataclass(frozen=True)
class ResourceEntry:
    uri: str
    name: str
    description: str
    mime_type: str = MIME_TYPE


NOTES: tuple[Note, ...] = (
    Note(
        id=1,
        title="What is MCP?",
        content="""Model Context Protocol (MCP) is an open standard by Anthropic.
It lets LLMs connect to external data sources and tools in a structured way.

Key primitives:
- Tools: actions the AI can take (like function calls)
- Resources: data the AI can read (like files/documents)
- Prompts: reusable message templates""",
        created_at="2025-01-01T10:00:00Z",
        tags=("mcp", "learning"),
    ),
    Note(
        id=2,
        title="MCP Transport Types",
        content="""MCP supports two main transports:

1. stdio - standard input/output
   - Best for local tools run as subprocesses (e.g. Claude Desktop)
   - Simple, no networking needed

2. Streamable HTTP - HTTP with streaming
   - Best for networked/cloud deployments
   - Supports multiple concurrent clients""",
        created_at="2025-01-02T12:00:00Z",
        tags=("mcp", "transport"),
    ),
    Note(
        id=3,
        title="Why use pydantic for validation?",
        content="""pydantic validates data against type-annotated models.

In MCP servers, you should ALWAYS validate tool inputs because:
1. The AI might send unexpected data types
2. Malformed inputs could crash your server
3. Good error messages help the AI self-correct

Example:
  class Person(BaseModel):
      name: str
      age: int = Field(ge=0)
  Person.model_validate(payload)  # raises ValidationError on bad input""",
        created_at="2025-01-03T09:00:00Z",
        tags=("python", "pydantic", "validation"),
    ),
)


def list_resources(notes: tuple[Note, ...] = NOTES) -> list[ResourceEntry]:
    entries = [
        ResourceEntry(
            uri=ALL_NOTES_URI,
            name="All Notes",
            description="A summary list of all learning notes",
        )
    ]
    entries.extend(
        ResourceEntry(
            uri=f"notes://{note.id}",
            name=note.title,
            description=f"Note #{note.id} - tags: {', '.join(note.tags)}",
        )
        for note in notes
    )
    return entries


def read_note(uri: str, notes: tuple[Note, ...] = NOTES) -> str:
    """
    Raises:
        NotFound: for an unknown URI or note id.
    """
    if uri == ALL_NOTES_URI:
        summary = "\n\n".join(
            f"[{n.id}] {n.title}\n    Tags: {', '.join(n.tags)}\n    Created: {n.created_at}"
            for n in notes
        )
        return f"All Notes ({len(notes)} total)\n\n{summary}"

    match = _NOTE_URI.match(uri)
    if match:
        note_id = int(match.group(1))
        for note in notes:
            if note.id == note_id:
                return (
                    f"{note.title}\nCreated: {note.created_at}\n"
                    f"Tags: {', '.join(note.tags)}\n\n{note.content}"
                )
        raise NotFound(f"Note with ID {note_id} not found", uri)

    raise NotFound(f"Unknown resource URI: {uri}", uri)
