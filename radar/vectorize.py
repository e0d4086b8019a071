from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class FeatureMatrix:
    """Dense TF-IDF scores, one row per document and one column per vocabulary term."""

    vocabulary: tuple[str, ...]
    values: np.ndarray
    idf: np.ndarray

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=float)
        if values.ndim != 2:
            raise ValueError(f"Feature matrix must be 2-D, got shape {values.shape}")
        if values.shape[1] != len(self.vocabulary):
            raise ValueError(
                f"Feature matrix has {values.shape[1]} columns but vocabulary has "
                f"{len(self.vocabulary)} terms"
            )
        idf = np.array(self.idf, dtype=float)
        if idf.shape != (len(self.vocabulary),):
            raise ValueError(f"IDF vector shape {idf.shape} does not match vocabulary")
        values.setflags(write=False)
        idf.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "idf", idf)

    @property
    def n_documents(self) -> int:
        return int(self.values.shape[0])

    @property
    def n_terms(self) -> int:
        return int(self.values.shape[1])

    def row(self, index: int) -> np.ndarray:
        if not 0 <= index < self.n_documents:
            raise IndexError(f"Document index {index} out of range for {self.n_documents} documents")
        return self.values[index]

    def column(self, term: str) -> np.ndarray:
        try:
            idx = self.vocabulary.index(term)
        except ValueError:
            raise KeyError(f"Term not in vocabulary: {term!r}") from None
        return self.values[:, idx]


def document_frequencies(docs: Sequence[Sequence[str]]) -> dict[str, int]:
    """Documents containing each term, keyed in order of first appearance."""
    df: dict[str, int] = {}
    for tokens in docs:
        for term in dict.fromkeys(tokens):
            df[term] = df.get(term, 0) + 1
    return df


def build_vocabulary(docs: Sequence[Sequence[str]], max_terms: int = 600) -> list[str]:
    df = document_frequencies(docs)
    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(df.items(), key=lambda item: item[1], reverse=True)
    return [term for term, _ in ranked[:max_terms]]


def compute_idf(docs: Sequence[Sequence[str]], vocabulary: Sequence[str]) -> np.ndarray:
    n_docs = len(docs)
    df = document_frequencies(docs)
    counts = np.array([df.get(term, 0) for term in vocabulary], dtype=float)
    return np.log((n_docs + 1) / (counts + 1)) + 1.0


def tfidf_matrix(docs: Sequence[Sequence[str]], vocabulary: Sequence[str]) -> FeatureMatrix:
    vocabulary = tuple(vocabulary)
    index = {term: i for i, term in enumerate(vocabulary)}
    idf = compute_idf(docs, vocabulary)

    values = np.zeros((len(docs), len(vocabulary)), dtype=float)
    for row, tokens in enumerate(docs):
        length = len(tokens) or 1
        for term, count in Counter(tokens).items():
            col = index.get(term)
            if col is not None:
                values[row, col] = count / length
    values *= idf

    return FeatureMatrix(vocabulary=vocabulary, values=values, idf=idf)
