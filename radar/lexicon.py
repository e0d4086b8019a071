"""Word lists and keyword maps that steer tokenizing, filtering and labeling."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

STOP_WORDS = frozenset(
    {
        # english function words
        "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for", "of",
        "with", "by", "from", "as", "is", "was", "are", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could", "should",
        "may", "might", "must", "shall", "can", "need", "dare", "ought", "used",
        "this", "that", "these", "those", "it", "its", "we", "our", "they", "their",
        "not", "no", "also", "however", "such", "more", "most", "than", "very",
        "about", "into", "over", "after", "before", "between", "through", "during",
        "both", "each", "other", "some", "all", "any", "new", "first", "last", "only",
        "one", "two", "how", "what", "when", "which", "who",
        # academic filler
        "using", "based", "approach", "proposed", "results", "method", "methods",
        "paper", "study", "research", "show", "shows", "shown", "et", "al",
        # html, web and file artifacts
        "img", "src", "alt", "div", "href", "http", "https", "www", "html", "css",
        "webp", "png", "jpg", "jpeg", "svg", "gif", "pdf", "url", "max", "format",
        "com", "org", "io", "net",
        "storage", "googleapis", "gweb", "uniblog", "publish", "prod", "images",
        # companies and products
        "gpt", "codex", "openai", "google", "microsoft", "meta", "github", "arxiv",
        "doi", "chatgpt", "gemini", "claude", "llama", "anthropic", "deepmind",
        # announcement filler
        "introducing", "announcing", "launched", "released", "update", "updates",
        "blog", "post", "article", "report", "press",
        # generic tech vocabulary
        "system", "systems", "model", "models", "data", "analysis", "information",
        "available", "access", "use", "enable", "features", "feature", "tools", "tool",
        "users", "applications", "application", "platform", "service", "services",
        "image", "video", "text", "content", "generate", "generation",
        "language", "large", "frontier", "enterprise", "transform", "transformer",
        "ie", "eg", "cf", "vs", "etc", "fig", "re", "pre", "non",
        # vague filler
        "community", "communities", "countries", "review", "reviews",
        "world", "people", "latest", "today", "year", "years",
        "work", "working", "works", "making", "made", "make",
        "way", "ways", "things", "thing", "part", "time",
        "different", "important", "possible", "potential",
        "help", "helps", "helping", "needs",
        "across", "many", "well", "like", "just", "even", "still",
        "high", "low", "best", "better", "able",
    }
)

# "human" and "ai" are left to the ubiquity penalty. No hyphenated terms: the
# tokenizer splits on hyphens.
THEME_TERMS = frozenset(
    {
        "collaboration", "team", "teaming", "trust", "delegation",
        "communication", "learning", "assistive", "interaction", "agents", "agent",
        "decision", "support", "design", "transparency", "ethics",
        "explainability", "control", "automation", "coordination", "mixed", "initiative",
        "cooperative", "partnership", "feedback", "calibration",
        "robot", "robotics", "autonomy", "oversight", "safety",
        "workflow", "accountability", "fairness",
    }
)

RELEVANCE_PHRASES = (
    "human-ai",
    "human ai",
    "human–ai",
    "human-machine",
    "human machine",
    "human-agent",
    "human agent",
    "human in the loop",
    "human-in-the-loop",
    "human-AI collaboration",
    "human AI collaboration",
    "human-AI team",
    "human AI team",
    "human-AI teaming",
    "human AI teaming",
    "AI collaboration",
    "AI-assisted",
    "AI assisted",
    "human-AI interaction",
    "human AI interaction",
    "human-centered AI",
    "human centred AI",
    "collaborative AI",
    "teaming",
    "human computer",
    "HCI",
    "assistive AI",
    "cooperative AI",
    "mixed-initiative",
    "mixed initiative",
)

LEVER_KEYWORDS = {
    "workflow": ("workflow", "process", "pipeline", "delegation", "task allocation"),
    "role": ("role", "teammate", "agent", "human-in-the-loop", "division of labor"),
    "ritual": ("ritual", "onboarding", "meeting", "cadence", "feedback loop"),
    "capability_boundary": ("capability", "boundary", "automation", "human oversight"),
    "interface": ("interface", "transparency", "explainability", "trust", "calibration"),
    "governance": ("governance", "policy", "ethics", "accountability", "fairness"),
}

INTENT_KEYWORDS = {
    "team_structure": ("team", "teaming", "collaboration", "structure"),
    "workflow_redesign": ("workflow", "redesign", "process"),
    "role_definition": ("role", "delegation", "agent"),
    "ritual_design": ("ritual", "onboarding", "feedback"),
    "tooling_selection": ("tool", "interface", "system"),
    "governance_policy": ("governance", "policy", "ethics"),
    "learning_upskilling": ("learning", "training", "upskilling", "skill"),
}


def _freeze_keywords(mapping: Mapping[str, tuple[str, ...]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in mapping.items()})


@dataclass(frozen=True)
class Lexicon:
    stop_words: frozenset[str] = STOP_WORDS
    theme_terms: frozenset[str] = THEME_TERMS
    relevance_phrases: tuple[str, ...] = RELEVANCE_PHRASES
    lever_keywords: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _freeze_keywords(LEVER_KEYWORDS)
    )
    intent_keywords: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _freeze_keywords(INTENT_KEYWORDS)
    )
    theme_boost: float = 1.6

    def __post_init__(self) -> None:
        # lists and dicts passed by callers are frozen so a shared Lexicon cannot drift
        object.__setattr__(self, "stop_words", frozenset(self.stop_words))
        object.__setattr__(self, "theme_terms", frozenset(t.lower() for t in self.theme_terms))
        object.__setattr__(self, "relevance_phrases", tuple(p.lower() for p in self.relevance_phrases))
        object.__setattr__(self, "lever_keywords", _freeze_keywords(self.lever_keywords))
        object.__setattr__(self, "intent_keywords", _freeze_keywords(self.intent_keywords))


def default_lexicon() -> Lexicon:
    return Lexicon()
