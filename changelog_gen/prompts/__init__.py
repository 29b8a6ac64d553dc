"""Prompt Construction Package"""

from changelog_gen.prompts.builder import MODE_INSTRUCTIONS, SYSTEM_PROMPT, PromptBuilder, PromptConfig

__all__ = [
    "MODE_INSTRUCTIONS",
    "SYSTEM_PROMPT",
    "PromptBuilder",
    "PromptConfig",
]
