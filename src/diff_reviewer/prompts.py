"""
Prompt construction for AI text review.

The review prompt carries the persona instruction, the optional user
question and both full texts. It is rebuilt for every request because
provider calls are stateless.
"""

from typing import Optional

from .models import Persona


DEFAULT_PERSONAS = [
    Persona(
        id="general",
        name="General Editor",
        description="You are an expert editor and proofreader. Analyze the changes objectively.",
    ),
    Persona(
        id="interviewer",
        name="Interviewer",
        description=(
            "You are a strict hiring manager or interviewer. Evaluate the text based on impact, "
            "clarity, use of the STAR method (if applicable), and professional presence. "
            "Determine which version makes the candidate sound more competent."
        ),
    ),
    Persona(
        id="academic",
        name="Academic Editor",
        description=(
            "You are a professional academic editor. Focus on formal tone, precision, citation "
            "style consistency, and logical flow. Point out if the changes improve scientific rigor."
        ),
    ),
    Persona(
        id="reviewer",
        name="Peer Reviewer",
        description=(
            "You are a critical peer reviewer. Look for gaps in argumentation, clarity of "
            "hypothesis, and strength of evidence. Evaluate if the modified text addresses "
            "potential reviewer concerns."
        ),
    ),
]


def construct_system_prompt(
    original: str,
    modified: str,
    persona_instruction: str,
    question: Optional[str] = None,
    language: str = "Chinese",
) -> str:
    """
    Build the context prompt that opens every review conversation.

    Args:
        original: Original text.
        modified: Modified text.
        persona_instruction: Instruction describing the reviewer persona.
        question: Optional question or goal the user wants answered.
        language: Language the analysis should be written in.

    Returns:
        Prompt text.
    """
    if question:
        question_context = (
            f'SPECIFIC QUESTION/GOAL: The user wants to know: "{question}".\n'
            "Compare which version better answers this question or achieves this goal."
        )
        evaluation_step = "Directly answer the user's specific question about which version is better."
    else:
        question_context = (
            "TASK: Compare the quality of the two texts. "
            "Highlight improvements and potential regressions."
        )
        evaluation_step = "Evaluate the overall improvement."

    return f"""{persona_instruction}

{question_context}

Here are the texts to analyze:

=== ORIGINAL TEXT ===
{original}
=====================

=== MODIFIED TEXT ===
{modified}
=====================

Please provide your analysis in {language} (Markdown format).
1. Summarize key changes.
2. {evaluation_step}
3. Provide a conclusion."""


def build_persona_generation_prompt(persona_name: str) -> str:
    """Build the single-shot prompt that drafts a persona instruction."""
    return f"""Task: You are an expert prompt engineer.
User Goal: The user wants to create a specific "Persona" for an AI text analysis tool.
Persona Name: "{persona_name}"

Action: Write a concise, effective System Instruction (2-3 sentences) that an AI should follow to act as this persona.
Focus on the tone, what to look for in text changes, and evaluation criteria.
Do NOT include introductory text like "Here is the prompt", just output the prompt itself."""
