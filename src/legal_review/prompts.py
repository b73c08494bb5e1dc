from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple, Union


class FocusArea(str, Enum):
    LEGALESE = "legalese"
    DEFINITIONS = "definitions"
    CLAUSES = "clauses"
    CLARITY = "clarity"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional[FocusArea]:
        """Return the matching focus area, or None for empty/unknown values."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


DEFAULT_TEMPLATE = """\
You are a legal document reviewer. Analyze the following legal document and provide constructive feedback. Focus on:

1. **Unnecessary Legalese**: Identify overly complex or archaic language that could be simplified
2. **Missing Definitions**: Point out terms that should be defined but aren't
3. **Problematic Clauses**: Flag clauses that may be one-sided, unclear, or potentially problematic
4. **Plain Language Opportunities**: Suggest where plain language could improve clarity

Document to review:

{document}

Provide a structured review with specific examples and recommendations."""

# Prompt templates for each focus area
FOCUS_TEMPLATES: Dict[FocusArea, str] = {
    FocusArea.LEGALESE: (
        "You are a legal document reviewer specializing in plain language. Review the following "
        "document and focus specifically on identifying unnecessary legalese, archaic language, "
        "and overly complex phrasing. Provide specific examples and suggest simpler alternatives."
        "\n\nDocument:\n\n{document}"
    ),
    FocusArea.DEFINITIONS: (
        "You are a legal document reviewer specializing in contract clarity. Review the following "
        "document and focus specifically on identifying terms that should be defined but aren't, "
        "and terms that are used inconsistently. List each term that needs definition."
        "\n\nDocument:\n\n{document}"
    ),
    FocusArea.CLAUSES: (
        "You are a legal document reviewer specializing in contract fairness. Review the following "
        "document and focus specifically on identifying problematic clauses, one-sided terms, "
        "ambiguous provisions, and potentially unfair conditions. Flag each issue with explanation."
        "\n\nDocument:\n\n{document}"
    ),
    FocusArea.CLARITY: (
        "You are a legal document reviewer specializing in plain language. Review the following "
        "document and focus specifically on opportunities to improve clarity, readability, and "
        "accessibility. Suggest concrete improvements."
        "\n\nDocument:\n\n{document}"
    ),
}


def get_prompt_template(focus_area: Union[FocusArea, str, None]) -> str:
    """Get the template for a focus area, falling back to the default review."""
    if not isinstance(focus_area, FocusArea):
        focus_area = FocusArea.parse(focus_area)
    if focus_area is None:
        return DEFAULT_TEMPLATE
    return FOCUS_TEMPLATES[focus_area]


def build_prompt(document_text: str, focus_area: Union[FocusArea, str, None] = None) -> str:
    """Insert the document text, unescaped, into the selected template."""
    return get_prompt_template(focus_area).format(document=document_text)


# Roughly 3000 tokens
MAX_DOCUMENT_CHARS = 12000
TRUNCATION_MARKER = "\n\n[Document truncated due to length...]"


def truncate_document(text: str, limit: int = MAX_DOCUMENT_CHARS) -> Tuple[str, bool]:
    """Cut ``text`` to ``limit`` characters and append the marker when it is longer."""
    if len(text) <= limit:
        return text, False
    return text[:limit] + TRUNCATION_MARKER, True
