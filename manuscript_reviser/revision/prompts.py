"""
Prompts for Chapter Revision

The system brief fixes the editor's role and output contract; the user
message carries the revision guidance followed by the full chapter text.
"""
from __future__ import annotations
from typing import Dict, List

REVISION_SYSTEM_TEMPLATE = """You are an expert developmental editor and prose stylist specializing in {genre}, specifically {subgenre}. Your task is to revise a chapter of fiction.

RULES:
1. Output ONLY the revised chapter text. No preamble, no commentary, no explanation, no meta-discussion.
2. Preserve the author's voice, style, and POV.
3. Maintain all plot points and character actions. Do not add or remove scenes.
4. Apply the revision guidance provided to adjust narrative dimensions through prose craft: word choice, pacing, interiority, dialogue subtext, physical detail, and scene structure.
5. Keep approximately the same word count (within 10%).
6. Preserve any markdown formatting (headings, emphasis, etc.).
7. Do not include any text before or after the revised chapter."""


GENERIC_BRIEF = """## Revision Focus

No specific dimension gaps were detected for this chapter, but please apply these general improvements:

1. **Prose Polish**: Tighten sentence structure, eliminate unnecessary words, and vary sentence rhythm
2. **Show Don't Tell**: Convert any telling passages into vivid sensory details and character actions
3. **Dialogue Enhancement**: Ensure dialogue sounds natural, has subtext, and reveals character
4. **Pacing**: Check that scene momentum matches the emotional beats. Speed up action, slow down for emotional moments
5. **Interiority**: Deepen character internal thoughts where appropriate for POV

"""


REVISION_USER_TEMPLATE = """{guidance}## Chapter Text to Revise

{text}"""


def build_system_prompt(genre: str = "fiction", subgenre: str = "general fiction") -> str:
    return REVISION_SYSTEM_TEMPLATE.format(genre=genre, subgenre=subgenre)


def build_messages(brief: str, text: str, genre: str = "fiction",
                   subgenre: str = "general fiction") -> List[Dict[str, str]]:
    """System brief plus one user message holding guidance and source text."""
    return [
        {"role": "system", "content": build_system_prompt(genre, subgenre)},
        {"role": "user", "content": REVISION_USER_TEMPLATE.format(guidance=brief, text=text)},
    ]
