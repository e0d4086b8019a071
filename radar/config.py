from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_GRAPH_PATH = "src/data/research-graph.json"
DEFAULT_CANDIDATES_PATH = "src/data/ingest-candidates.json"
MAX_K = 20


@dataclass(frozen=True)
class Viewport:
    x_min: float = 80.0
    y_min: float = 60.0
    x_max: float = 920.0
    y_max: float = 640.0

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def center(self) -> tuple[float, float]:
        return (self.x_min + self.x_max) / 2, (self.y_min + self.y_max) / 2


@dataclass(frozen=True)
class PipelineConfig:
    k: int = 10
    max_vocab: int = 600
    min_cluster_size: int = 3
    seed: int = 42
    max_iterations: int = 100
    viewport: Viewport = field(default_factory=Viewport)
    compose_rings: bool = False
    dry_run: bool = False
    graph_path: str = DEFAULT_GRAPH_PATH
    candidates_path: str = DEFAULT_CANDIDATES_PATH

    def __post_init__(self) -> None:
        if self.k < 1:
            raise ValueError(f"k must be at least 1, got {self.k}")
        if self.max_vocab < 1:
            raise ValueError(f"max_vocab must be at least 1, got {self.max_vocab}")
        if self.min_cluster_size < 1:
            raise ValueError(f"min_cluster_size must be at least 1, got {self.min_cluster_size}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if self.viewport.width <= 0 or self.viewport.height <= 0:
            raise ValueError(f"Viewport must have positive width and height: {self.viewport}")


def _env_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_config(
    k: int | None = None,
    dry_run: bool = False,
    compose_rings: bool = False,
    graph_path: str | None = None,
    candidates_path: str | None = None,
    env_file: str | None = None,
) -> PipelineConfig:
    if env_file:
        load_dotenv(env_file)
    else:
        default_env = Path(".env")
        if default_env.exists():
            load_dotenv(default_env)

    defaults = PipelineConfig()
    env_k = _env_int("RADAR_K")
    env_vocab = _env_int("RADAR_MAX_VOCAB")
    env_min_size = _env_int("RADAR_MIN_CLUSTER_SIZE")
    env_seed = _env_int("RADAR_SEED")

    return PipelineConfig(
        k=k if k is not None else (env_k if env_k is not None else defaults.k),
        max_vocab=env_vocab if env_vocab is not None else defaults.max_vocab,
        min_cluster_size=env_min_size if env_min_size is not None else defaults.min_cluster_size,
        seed=env_seed if env_seed is not None else defaults.seed,
        compose_rings=compose_rings,
        dry_run=dry_run,
        graph_path=graph_path or os.getenv("RADAR_GRAPH_PATH", "").strip() or DEFAULT_GRAPH_PATH,
        candidates_path=(
            candidates_path
            or os.getenv("RADAR_CANDIDATES_PATH", "").strip()
            or DEFAULT_CANDIDATES_PATH
        ),
    )
