"""Topic clustering pipeline for a human-AI collaboration research radar."""

__all__ = [
    "config",
    "lexicon",
    "relevance",
    "text",
    "vectorize",
    "clustering",
    "projection",
    "design",
    "labeling",
    "io",
    "merge",
    "ingest",
]
