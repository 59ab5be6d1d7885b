"""
Generation module - answers from retrieved context.

1. Protocol (AnswerGenerator, in core.protocols) defines the interface
2. Production implementation (OpenAIAnswerGenerator)
3. Test double (MockAnswerGenerator)
4. Factory function (get_answer_generator)
"""

from mini_rag.generation.llm import (
    LLMConfig,
    OpenAIAnswerGenerator,
    MockAnswerGenerator,
    get_answer_generator,
)
from mini_rag.generation.prompts import (
    FALLBACK_ANSWER,
    SYSTEM_PROMPT,
    build_context,
    build_user_prompt,
)

__all__ = [
    "LLMConfig",
    "OpenAIAnswerGenerator",
    "MockAnswerGenerator",
    "get_answer_generator",
    "FALLBACK_ANSWER",
    "SYSTEM_PROMPT",
    "build_context",
    "build_user_prompt",
]
