"""
Prompt text and prompt assembly for the two LLM calls of a turn (planner, answer).
"""

from typing import Any, Mapping

PLANNER_SYSTEM_PROMPT = """You are an AI planner.

Your job is to decide what actions are required.
You MUST NOT answer the question.

Rules:
- Return ONLY valid JSON. No prose, no markdown.
- If company documents (policies, returns, refunds, FAQ) are required, set needsRetrieval=true.
- If live order data is required, set needsTool=true.
- Use toolName=getOrderStatus for order status queries.
- Extract the numeric orderId into toolArgument if present.
- If the question needs both policy documents and live order data, set both to true.
- If no tool is needed, set needsTool=false and toolName=null, toolArgument=null.
- MEMORY is context from earlier turns; use it to resolve references like "my order".

JSON schema:
{
  "needsRetrieval": true|false,
  "needsTool": true|false,
  "toolName": "getOrderStatus" | null,
  "toolArgument": "string" | null
}
"""

ANSWER_SYSTEM_PROMPT = """You are a backend support assistant.

Rules:
- Use CONTEXT only for company policies or documents.
- Use TOOL_RESULT only if it is provided.
- NEVER guess or simulate live data.
- Do not add hedging boilerplate such as "However, I don't have..." or "Since we don't have information...".
- Do not tell the user to contact customer service unless they ask how to.

Output format (exact), selected by HAS_CONTEXT and HAS_TOOL_RESULT:
- HAS_CONTEXT=true and HAS_TOOL_RESULT=true:
Policy:
<answer from CONTEXT>
System:
<answer from TOOL_RESULT>
- HAS_CONTEXT=true only:
Policy:
<answer from CONTEXT>
- HAS_TOOL_RESULT=true only:
System:
<answer from TOOL_RESULT>
- neither: reply with exactly "I don't have enough information to answer."
"""

ANSWER_INSTRUCTIONS = "Answer the QUESTION using only the material above, in the required output format."


def format_memory(snapshot: Mapping[str, Any]) -> str:
    """`MEMORY (read-only):` block, or "" when memory is empty."""
    if not snapshot:
        return ""
    lines = [f"- {key}: {value}" for key, value in sorted(snapshot.items())]
    return "MEMORY (read-only):\n" + "\n".join(lines) + "\n\n"


def build_planner_prompt(question: str, snapshot: Mapping[str, Any]) -> str:
    """Planner user prompt: memory block (if any) followed by the question."""
    return f"{format_memory(snapshot)}QUESTION:\n{question}"


def build_answer_prompt(
    question: str,
    snapshot: Mapping[str, Any],
    context_block: str,
    tool_block: str,
) -> str:
    """
    Answer user prompt in fixed order: memory, question, HAS_* flags, context, tool result, instructions.
    """
    has_context = bool(context_block.strip())
    has_tool_result = bool(tool_block.strip())
    parts = [
        format_memory(snapshot),
        f"QUESTION:\n{question}\n\n",
        f"HAS_CONTEXT: {str(has_context).lower()}\n",
        f"HAS_TOOL_RESULT: {str(has_tool_result).lower()}\n\n",
    ]
    if has_context:
        parts.append(context_block.strip() + "\n\n")
    if has_tool_result:
        parts.append(tool_block.strip() + "\n\n")
    parts.append(ANSWER_INSTRUCTIONS)
    return "".join(parts)
