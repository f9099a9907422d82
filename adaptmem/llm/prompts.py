from __future__ import annotations

from datetime import datetime

from adaptmem.memory.models import MemoryRecord, RecallResult
from adaptmem.utils import days_between


def assistant_system() -> str:
    return (
        "You are a helpful assistant with long-term memory of this user. "
        "When the prompt includes recalled context, treat it as things the user told you earlier."
    )


def format_memory_context(result: RecallResult, now: datetime) -> str:
    if not result.memories:
        return ""

    groups: dict[str, list[MemoryRecord]] = {}
    for memory in result.memories:
        groups.setdefault(memory.type.value, []).append(memory)

    lines: list[str] = []
    for memory_type, memories in groups.items():
        lines.append(f"## {memory_type.capitalize()} Context:")
        for index, memory in enumerate(memories, start=1):
            age = int(days_between(memory.created_at, now))
            lines.append(f"{index}. {memory.content} ({age} days ago, importance: {memory.importance}/10)")
        lines.append("")
    return "\n".join(lines)


def enhanced_prompt(message: str, memory_context: str, reasoning: str) -> str:
    if not memory_context:
        return message
    return f"""Based on our conversation history and your memory of relevant context:

{memory_context}

Memory Recall Reasoning: {reasoning}

Current Question: {message}

Please provide a response that:
1. Acknowledges relevant context from memory when applicable
2. Builds upon previous conversations and established facts
3. References specific details that demonstrate continuity
4. Suggests connections to related topics or projects when helpful

Your response should feel natural and contextually aware, as if you truly remember our previous interactions."""
