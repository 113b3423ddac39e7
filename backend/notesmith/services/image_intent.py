"""
NoteSmith Backend — Image Prompt Intent Classifier
====================================================

What:  Classifies a question about an image (OCR, counting, estimation, …)
       and supplies the system prompt tuned for that kind of question.
Who:   NoteService.analyze_image_note.

Rules are checked in order; the first match wins. Colour questions are
only COLOR_ANALYSIS when the prompt opens with the colour word and does not
also ask for a name, identity or description.
"""

import enum
import re
from typing import Dict, Pattern, Tuple


class ImageIntent(str, enum.Enum):
    COLOR_ANALYSIS = "color_analysis"
    OCR = "ocr"
    COUNTING = "counting"
    ESTIMATION = "estimation"
    OBJECT_IDENTIFICATION = "object_identification"
    DESCRIPTION = "description"
    GENERAL_ANALYSIS = "general_analysis"


MULTIMODAL_SYSTEM_PROMPT = """You are a multimodal AI assistant that analyzes images together with user prompts.

The user will provide:
• one image
• one text prompt related to that image

Your task:
• Carefully analyze the image
• Fully understand the user's prompt
• Use the image as primary evidence
• Combine visual understanding and reasoning
• Answer accurately, clearly, and naturally

Guidelines:
• Answer ONLY what the user asks
• Do not add extra information
• If text is visible and the user asks about text, extract it faithfully
• If identification is requested, use reasonable visual inference
• If estimation is requested, give a realistic estimate and briefly explain
• If the answer is uncertain, say so honestly instead of guessing
• Do NOT hallucinate facts not supported by the image
• Do NOT mention rules, confidence thresholds, or system behavior

Output:
• Plain natural language
• No markdown unless explicitly requested"""

_COLOR_QUESTION = re.compile(
    r"^(what|which|tell me)?\s*(color|colour|palette|shade|hue)s?\s*(is|are|of)?",
    re.IGNORECASE,
)
_NOT_ONLY_COLOR = re.compile(r"name|who|what is|identify|describe|character")

INTENT_PATTERNS: Tuple[Tuple[ImageIntent, Pattern[str]], ...] = (
    (ImageIntent.OCR, re.compile(r"text|ocr|read|extract|written")),
    (ImageIntent.COUNTING, re.compile(r"count|how many|number of")),
    (ImageIntent.ESTIMATION, re.compile(r"weight|size|distance|age|estimate")),
    (
        ImageIntent.OBJECT_IDENTIFICATION,
        re.compile(r"identify|what is this|which object|who is|character|person"),
    ),
    (ImageIntent.DESCRIPTION, re.compile(r"describe|what's happening|scene")),
)

INTENT_SYSTEM_PROMPTS: Dict[ImageIntent, str] = {
    ImageIntent.COLOR_ANALYSIS: (
        "You are a color analysis AI.\n"
        "The user is asking about colors in the image.\n"
        "Identify the colors accurately and describe them clearly.\n"
        "If the user asks for additional context (like names or objects), provide that too.\n"
        "Be accurate and thorough."
    ),
    ImageIntent.ESTIMATION: (
        "You are an image-based estimation AI.\n"
        "Provide accurate numeric estimates based on what you see.\n"
        "Explain your reasoning briefly.\n"
        "Be as precise as possible."
    ),
    ImageIntent.OCR: (
        "You are an OCR assistant.\n"
        "Extract all visible text from the image accurately.\n"
        "Preserve formatting where relevant.\n"
        "If no text is visible, say so clearly."
    ),
    ImageIntent.COUNTING: (
        "You are a visual counting assistant.\n"
        "Count what the user asked for accurately.\n"
        "Provide the number and a brief clarification.\n"
        "Be precise and thorough."
    ),
    ImageIntent.OBJECT_IDENTIFICATION: (
        "You are an object and character identification AI.\n"
        "Identify what you see in the image accurately.\n"
        "Provide names, descriptions, and relevant details.\n"
        "Be specific and accurate. If you recognize characters, brands, or objects, name them."
    ),
    ImageIntent.DESCRIPTION: (
        "You are an image description AI.\n"
        "Describe what you see in detail.\n"
        "Be accurate, thorough, and helpful.\n"
        "Include relevant context and details."
    ),
    ImageIntent.GENERAL_ANALYSIS: (
        "You are a helpful image analysis AI.\n"
        "Answer the user's question accurately based on what you see.\n"
        "Be thorough, accurate, and provide relevant details.\n"
        "If you're unsure, say so rather than guessing."
    ),
}

# Titles for the StructuredNote-shaped answer; other intents use the default.
INTENT_TITLES: Dict[ImageIntent, str] = {
    ImageIntent.ESTIMATION: "Estimated Result",
    ImageIntent.OCR: "Extracted Text",
}
DEFAULT_IMAGE_TITLE = "Image Insight"


def classify_image_intent(prompt: str) -> ImageIntent:
    normalized = prompt.lower()

    if _COLOR_QUESTION.search(normalized) and not _NOT_ONLY_COLOR.search(normalized):
        return ImageIntent.COLOR_ANALYSIS

    for intent, pattern in INTENT_PATTERNS:
        if pattern.search(normalized):
            return intent
    return ImageIntent.GENERAL_ANALYSIS


def system_prompt_for(intent: ImageIntent) -> str:
    return INTENT_SYSTEM_PROMPTS.get(intent, INTENT_SYSTEM_PROMPTS[ImageIntent.GENERAL_ANALYSIS])


def title_for(intent: ImageIntent) -> str:
    return INTENT_TITLES.get(intent, DEFAULT_IMAGE_TITLE)
