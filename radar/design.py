from __future__ import annotations

from dataclasses import dataclass, field
import re

from radar.lexicon import Lexicon, default_lexicon

_QUESTION_RE = re.compile(r"(how (?:might|should|do|can)[^.?!]+[.?!])")
_QUESTION_CUES = ("how might", "how should", "how do ")


@dataclass
class DesignMetadata:
    design_levers: list[str] = field(default_factory=list)
    designer_intents: list[str] = field(default_factory=list)
    design_question: str = ""


def infer_design_metadata(
    title: str | None,
    summary: str | None,
    lexicon: Lexicon | None = None,
) -> DesignMetadata:
    """Keyword heuristics that tag a document with design levers, intents and a guiding question."""
    lexicon = lexicon or default_lexicon()
    text = f"{title or ''} {summary or ''}".lower()

    levers = [
        lever
        for lever, keywords in lexicon.lever_keywords.items()
        if any(keyword in text for keyword in keywords)
    ]
    intents = [
        intent
        for intent, keywords in lexicon.intent_keywords.items()
        if any(keyword in text for keyword in keywords)
    ]

    question = ""
    if any(cue in text for cue in _QUESTION_CUES):
        match = _QUESTION_RE.search(text)
        if match:
            question = match.group(1).strip()
    if not question and levers:
        question = f"How might design support {levers[0].replace('_', ' ')} in human-AI collaboration?"

    return DesignMetadata(design_levers=levers, designer_intents=intents, design_question=question)
