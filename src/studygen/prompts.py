"""
Prompt templates for each artifact kind, plus document clean-up.
"""

import re

from studygen.artifacts import SummaryOptions

# Characters of cleaned document text sent with each artifact kind.
SUMMARY_CONTEXT_CHARS = 500_000
FLASHCARD_CONTEXT_CHARS = 40_000
MINDMAP_CONTEXT_CHARS = 500_000
CHAT_CONTEXT_CHARS = 50_000

_PAGE_LINE = re.compile(r"^.*?Page \d+.*?$", re.MULTILINE)
_COPYRIGHT_LINE = re.compile(r"^.*?©.*?$", re.MULTILINE)
_TABLE_OF_CONTENTS = re.compile(r"Table of Contents[\s\S]*?(?=\n\n|\n[A-Z])", re.IGNORECASE)
_BLANK_RUNS = re.compile(r"\n{3,}")


def clean_text(text: str) -> str:
    """Remove page-number lines, copyright lines, a table of contents and extra blank lines."""
    text = _PAGE_LINE.sub("", text)
    text = _COPYRIGHT_LINE.sub("", text)
    text = _TABLE_OF_CONTENTS.sub("", text, count=1)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip()


IGNORE_NOISE = """Ignore completely: tables of contents, page numbers, headers and footers,
exam instructions, copyright notices, acknowledgements and reference lists."""

STYLE_TEMPLATES = {
    "conceptual": (
        "Focus on high-level concepts, relationships and the big picture: overarching "
        "themes, how ideas connect, theoretical frameworks and the reasons behind them."
    ),
    "mathematical": (
        "Emphasize formulas, equations and mathematical reasoning: every formula in proper "
        "notation, step-by-step derivations, quantitative relationships and worked examples."
    ),
    "bullet-points": (
        "Use concise, scannable bullet points grouped under topic headers. Keep each point "
        "to one or two lines and minimize explanatory prose."
    ),
    "detailed": (
        "Provide comprehensive explanations with several examples per topic, background "
        "context, practical applications and coverage of subtopics and nuances."
    ),
}

DEPTH_INSTRUCTIONS = {
    "basic": (
        "Use simple, accessible language for beginners. Define any jargon, build from first "
        "principles and use analogies. Assume minimal prior knowledge."
    ),
    "intermediate": (
        "Balance detail with clarity for students with some background. Use standard "
        "terminology with brief explanations and cover the main topics thoroughly."
    ),
    "advanced": (
        "Include technical detail for experienced learners. Use terminology freely and cover "
        "edge cases, nuances, implications and advanced theory."
    ),
}

LENGTH_LIMITS = {
    "short": "Write a concise summary of 500-800 words covering only the 3-5 most critical topics.",
    "medium": "Write a balanced summary of 1000-1500 words with 1-2 examples per major topic.",
    "long": "Write a comprehensive summary of 2000-3000 words with detailed explanations and examples.",
}

SUMMARY_SYSTEM = """You are an academic content analyst who writes clear, well-organized study guides
for exam preparation. Summaries are accurate to the source material, use markdown headings,
put key terms in **bold** and never ask for the document to be provided."""

SUMMARY_PROMPT = """Transform this document into a study guide.

{ignore}

Style: {style}
Depth: {depth}
Length: {length}

Structure the guide with these sections:
# Document Overview
# Main Topics Covered
# Key Concepts & Definitions
# Important Relationships & Connections
# Critical Points to Remember
# Key Facts & Data
# Study Tips for This Material

Document Content:
{document}"""

FLASHCARD_SYSTEM = """You create flashcards for active recall. Each question tests one concept,
answers are accurate and 1-3 sentences long, and yes/no questions are avoided."""

FLASHCARD_PROMPT = """Generate exactly {count} flashcard question-answer pairs from this content.
Mix definitions, concepts, relationships and applications.

Respond ONLY with a valid JSON array, no other text:
[
  {{"question": "What is X?", "answer": "X is..."}},
  {{"question": "How does Y work?", "answer": "Y works by..."}}
]

Content:
{document}"""

MINDMAP_PROMPT = """Create a hierarchical markdown mindmap of this document.

{ignore}

Rules:
1. One main topic at the top (#)
2. 3-8 major subtopics (##), each with 3-7 key concepts (###)
3. Use #### for sub-concepts and "-" bullets for details
4. Keep each node to 5-10 words

Document Content:
{document}

Generate ONLY the markdown mindmap. No explanations or preamble."""

CHAT_SYSTEM = """You are a study assistant. Answer questions using ONLY the provided document
context. If the context does not contain the answer, say so clearly. Use simple language and
cite the relevant part of the document when helpful."""

CHAT_PROMPT = """Document Context:
{context}

Student Question: {question}

Provide a clear, helpful answer based on the document."""


def summary_prompt(document: str, options: SummaryOptions) -> str:
    return SUMMARY_PROMPT.format(
        ignore=IGNORE_NOISE,
        style=STYLE_TEMPLATES[options.style],
        depth=DEPTH_INSTRUCTIONS[options.depth],
        length=LENGTH_LIMITS[options.length],
        document=clean_text(document)[:SUMMARY_CONTEXT_CHARS],
    )


def flashcard_prompt(document: str, count: int) -> str:
    return FLASHCARD_PROMPT.format(count=count, document=clean_text(document)[:FLASHCARD_CONTEXT_CHARS])


def mindmap_prompt(document: str) -> str:
    return MINDMAP_PROMPT.format(ignore=IGNORE_NOISE, document=clean_text(document)[:MINDMAP_CONTEXT_CHARS])


def chat_prompt(question: str, context: str) -> str:
    return CHAT_PROMPT.format(question=question, context=clean_text(context)[:CHAT_CONTEXT_CHARS])
