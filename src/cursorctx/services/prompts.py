from __future__ import annotations

from ..domain.models import GenerationRequest

SYSTEM_PROMPT = (
    "You are a Senior Architect at Cursor.sh. Analyze the provided Tech Stack AND the README "
    "description to create a masterpiece .cursorrules file. Include: Project structure rules, "
    "specific naming conventions for the detected frameworks, and common pitfalls to avoid for "
    "this specific stack. Return ONLY the content of the .cursorrules file, nothing else, no "
    "markdown formatting blocks like ```text."
)

REFINE_SYSTEM_PROMPT = (
    "You are an expert Architect. You will be given an existing .cursorrules file and a "
    "refinement request. Rewrite and stream the complete updated .cursorrules incorporating "
    "the requested change. Return ONLY the rules, nothing else, no markdown formatting blocks "
    "like ```text."
)


def build_refine_content(existing_rules: str, refinement_prompt: str) -> str:
    return (
        f"Here are the current .cursorrules:\n\n{existing_rules}\n\n"
        f"The user requested this change: {refinement_prompt}"
    )


def for_repository_context(prompt_input: str) -> GenerationRequest:
    return GenerationRequest(system_prompt=SYSTEM_PROMPT, user_content=prompt_input)


def for_refinement(existing_rules: str, refinement_prompt: str) -> GenerationRequest:
    return GenerationRequest(
        system_prompt=REFINE_SYSTEM_PROMPT,
        user_content=build_refine_content(existing_rules, refinement_prompt),
    )
