"""
Answer generation prompts - externalized for versioning and testing.

By keeping prompts out of the client code:
1. We can review prompt changes in code review
2. We can test prompt formatting without API calls
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mini_rag.retrieval.document import Document


MAX_CONTEXT_DOCUMENTS = 5

CONTEXT_HEADER = "=== COMPANY INFORMATION ==="
NO_CONTEXT = "No specific information was found in the knowledge base."

# Returned when the model produces an empty completion
FALLBACK_ANSWER = "Desculpe, não consegui gerar uma resposta no momento."


# ---------------------------------------------------------------------------
# SYSTEM PROMPT
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """You are a sales assistant for a shop that sells personalised products.
You help customers with prices, lead times and quotes.

INSTRUCTIONS:
- Be friendly, helpful and professional
- Answer using the company information provided with the question
- If you don't know something specific, say so honestly and suggest the customer get in touch for details
- Focus on prices, delivery times and product specifications
- Keep answers concise but informative
- Answer in natural Brazilian Portuguese"""


# ---------------------------------------------------------------------------
# FORMATTING
# ---------------------------------------------------------------------------


def build_context(documents: list[Document]) -> str:
    """
    Render retrieved documents as a numbered context block.

    Only the first MAX_CONTEXT_DOCUMENTS documents are considered; blank
    ones are skipped but keep their position number.
    """
    if not documents:
        return NO_CONTEXT

    lines = [CONTEXT_HEADER]
    for index, doc in enumerate(documents[:MAX_CONTEXT_DOCUMENTS], start=1):
        if not doc.text or not doc.text.strip():
            continue
        lines.append(f"Document {index}:")
        lines.append(doc.text.strip())
        lines.append("")
    return "\n".join(lines)


def build_user_prompt(question: str, documents: list[Document]) -> str:
    """Format the user turn: context block, then the customer's question."""
    return f"""{build_context(documents)}

CUSTOMER QUESTION: {question}

ANSWER:"""
