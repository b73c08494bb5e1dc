"""
Review legal documents with an LLM: extract text from an uploaded PDF or
plain-text file, wrap it in a review prompt and return the model's feedback.
"""

from .config import ProviderConfig
from .extractor import extract_text
from .llm_review import LLMReviewer
from .prompts import FocusArea, build_prompt

__all__ = ["ProviderConfig", "extract_text", "LLMReviewer", "FocusArea", "build_prompt"]
