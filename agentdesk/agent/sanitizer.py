"""
Answer sanitizer: enforce the Policy:/System: output contract on raw model text.

Line-oriented state machine. A `Policy:` header keeps its section only when the turn
had retrieved context; a `System:` header keeps its section only when a tool result
exists. Hedging lines and "no tool result" disclaimers are always dropped. Unheaded text
is kept when at least one section is allowed; a preamble before the first header is kept
only when both are.

sanitize() is idempotent: it only removes lines, never adds headers.
"""

import re

NOT_ENOUGH_INFO = "I don't have enough information to answer."

POLICY_HEADER = "policy:"
SYSTEM_HEADER = "system:"

HEDGE_PREFIXES: tuple[str, ...] = (
    "however, i don't have",
    "however, i do not have",
    "however, we don't have",
    "since we don't have information",
    "since i don't have information",
    "since there is no tool result",
    "unfortunately, i don't have",
)

_NO_TOOL_RESULT = re.compile(
    r"^(there (is|was) )?no tool[ _]result( (was |is )?(provided|available|given))?\.?$",
    re.IGNORECASE,
)


def _normalize(line: str) -> str:
    """Lower-cased line with markdown emphasis/heading marks removed, for header and hedge matching."""
    return line.strip().strip("*#").strip().replace("’", "'").lower()


def _is_disallowed(norm: str) -> bool:
    if _NO_TOOL_RESULT.match(norm):
        return True
    return norm.startswith(HEDGE_PREFIXES)


def _is_header(norm: str) -> bool:
    return norm.startswith((POLICY_HEADER, SYSTEM_HEADER))


def sanitize(text: str, has_context: bool, has_tool_result: bool) -> str:
    """Keep only the permitted sections of text; fall back to NOT_ENOUGH_INFO when nothing survives."""
    lines = (text or "").splitlines()
    if any(_is_header(_normalize(line)) for line in lines):
        # preamble before the first header belongs to neither section
        keep = has_context and has_tool_result
    else:
        keep = has_context or has_tool_result
    out: list[str] = []
    for line in lines:
        norm = _normalize(line)
        if _is_disallowed(norm):
            continue
        # a bare header opens a section; "Policy: text" re-evaluates keep the same way
        if norm.startswith(POLICY_HEADER):
            keep = has_context
        elif norm.startswith(SYSTEM_HEADER):
            keep = has_tool_result
        if keep:
            out.append(line.rstrip())
    result = "\n".join(out).strip()
    return result or NOT_ENOUGH_INFO
