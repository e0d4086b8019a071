from collections import Counter

import numpy as np

from radar.config import PipelineConfig
from radar.merge import (
    cluster_documents,
    drop_duplicate_ids,
    graph_nodes_to_docs,
    ingest_items_to_docs,
    merge_graph,
    summarize_clusters,
)

from conftest import make_node

VOLATILE = {"cluster", "embedding"}


def _positions(result):
    return np.array([node["embedding"] for node in result.nodes])


def _pairwise(points):
    diff = points[:, None, :] - points[None, :, :]
    return np.sqrt((diff ** 2).sum(axis=-1))


def _cluster_sizes(result):
    return Counter(node["cluster"] for node in result.nodes)


def test_every_node_is_positioned_and_clustered(topic_graph, config):
    result = merge_graph(topic_graph, [], config)
    assert len(result.nodes) == 12
    assert [n["id"] for n in result.nodes] == [n["id"] for n in topic_graph["nodes"]]
    cluster_ids = {c["id"] for c in result.clusters}
    for node in result.nodes:
        assert node["cluster"] in cluster_ids
        assert len(node["embedding"]) == 2


def test_cluster_ids_are_dense(topic_graph, config):
    result = merge_graph(topic_graph, [], config)
    expected = [f"cluster-{i}" for i in range(len(result.clusters))]
    assert [c["id"] for c in result.clusters] == expected
    assert set(_cluster_sizes(result)) == set(expected)
    assert len(result.clusters) <= config.k


def test_minimum_cluster_size(topic_graph, config):
    result = merge_graph(topic_graph, [], config)
    assert min(_cluster_sizes(result).values()) >= config.min_cluster_size


def test_positions_inside_viewport(topic_graph):
    for rings in (False, True):
        config = PipelineConfig(k=3, compose_rings=rings)
        points = _positions(merge_graph(topic_graph, [], config))
        viewport = config.viewport
        assert (points[:, 0] >= viewport.x_min - 1e-9).all()
        assert (points[:, 0] <= viewport.x_max + 1e-9).all()
        assert (points[:, 1] >= viewport.y_min - 1e-9).all()
        assert (points[:, 1] <= viewport.y_max + 1e-9).all()


def test_runs_are_deterministic(topic_graph, config):
    first = merge_graph(topic_graph, [], config)
    second = merge_graph(topic_graph, [], config)
    assert [n["cluster"] for n in first.nodes] == [n["cluster"] for n in second.nodes]
    assert [c["label"] for c in first.clusters] == [c["label"] for c in second.clusters]
    # PCA orientation is not canonical; only relative layout is compared
    assert np.allclose(_pairwise(_positions(first)), _pairwise(_positions(second)))


def test_payload_passes_through(topic_graph, config):
    result = merge_graph(topic_graph, [], config)
    by_id = {n["id"]: n for n in result.nodes}
    for node in topic_graph["nodes"]:
        out = by_id[node["id"]]
        assert {k: v for k, v in out.items() if k not in VOLATILE} == node


def test_clusters_have_labels_and_terms(topic_graph, config):
    result = merge_graph(topic_graph, [], config)
    for cluster in result.clusters:
        assert cluster["label"]
        assert len(cluster["topTerms"]) <= 5
        assert len(cluster["sampleDesignQuestions"]) <= 2


def test_irrelevant_candidates_are_filtered(topic_graph, config):
    candidates = [
        {"id": "feed-earnings", "title": "Quarterly Earnings Report", "summary": "Revenue grew.", "publishedAt": "2024-05-01"},
        {
            "id": "feed-teaming",
            "title": "Building Trust in Human-AI Teaming",
            "summary": "Trust calibration for agents.",
            "publishedAt": "Tue, 14 May 2024 10:00:00 GMT",
            "url": "https://example.com/teaming",
            "tags": ["industry"],
        },
    ]
    result = merge_graph(topic_graph, candidates, config)
    ids = [n["id"] for n in result.nodes]
    assert "feed-earnings" not in ids
    assert ids[-1] == "feed-teaming"
    node = result.nodes[-1]
    assert node["authors"] == "Various"
    assert node["year"] == 2024
    assert node["source"] == "industry"
    assert "interface" in node["designLevers"]
    assert result.stats["ingest_candidates"] == 2
    assert result.stats["ingest_relevant"] == 1


def test_existing_document_wins_id_collision(topic_graph, config):
    existing = topic_graph["nodes"][0]
    candidates = [{"id": existing["id"], "title": "Human-AI teaming duplicate", "summary": ""}]
    result = merge_graph(topic_graph, candidates, config)
    matches = [n for n in result.nodes if n["id"] == existing["id"]]
    assert len(matches) == 1
    assert matches[0]["title"] == existing["title"]
    assert result.stats["duplicates_dropped"] == 1


def test_dropped_duplicate_still_shapes_vocabulary_and_terms():
    graph = {"nodes": [make_node(node_id, "Trust") for node_id in ("a", "b", "c")]}
    candidates = [{"id": "a", "title": "Xylophone xylophone human-ai teaming", "summary": ""}]
    result = merge_graph(graph, candidates, PipelineConfig(k=1))
    assert [n["id"] for n in result.nodes] == ["a", "b", "c"]
    assert result.nodes[0]["title"] == "Trust"
    assert "xylophone" in result.clusters[0]["topTerms"]


def test_duplicates_count_toward_vocabulary(topic_graph, config):
    baseline = merge_graph(topic_graph, [], config)
    candidates = [{"id": "trust-0", "title": "Human-AI teaming: xylophone quasar", "summary": ""}]
    result = merge_graph(topic_graph, candidates, config)
    assert result.stats["vocabulary_size"] == baseline.stats["vocabulary_size"] + 2
    assert len(result.nodes) == 12
    sizes = _cluster_sizes(result)
    assert set(sizes) == {f"cluster-{i}" for i in range(len(result.clusters))}
    assert min(sizes.values()) >= config.min_cluster_size


def test_output_fed_back_keeps_identity_and_payload(topic_graph, config):
    candidates = [{"id": "feed-hat", "title": "Human-AI teaming in emergency response", "summary": "Trust and delegation."}]
    first = merge_graph(topic_graph, candidates, config)
    second = merge_graph(first.to_dict(), [], config)
    strip = lambda nodes: [{k: v for k, v in n.items() if k not in VOLATILE} for n in nodes]
    assert strip(second.nodes) == strip(first.nodes)


def test_outliers_are_merged_into_real_clusters():
    nodes = [make_node(f"d{i}", title, summary) for i, (title, summary) in enumerate(
        [
            ("Trust calibration for operators", "Trust calibration with explanations and transparency."),
            ("Explanations repair trust", "Transparency and explanations repair operator trust."),
            ("Calibrating trust in agents", "Operators calibrate trust via explanations."),
            ("Transparency cues and trust", "Explanations improve trust calibration."),
            ("Robot autonomy on factory floors", "Robot safety and autonomy near coworkers."),
            ("Safe robot handovers", "Robot autonomy limits for safety."),
            ("Adjustable robot autonomy", "Operators tune robot autonomy and safety."),
            ("Robot safety envelopes", "Autonomy envelopes keep robot motion safe."),
            ("Delegation workflows", "Workflow delegation between teams and agents."),
            ("Delegating workflow steps", "Teams delegate workflow steps to agents."),
        ]
    )]
    nodes += [make_node("zebra", "Zebra"), make_node("quokka", "Quokka")]

    result = merge_graph({"nodes": nodes}, [], PipelineConfig(k=3, min_cluster_size=3))
    sizes = _cluster_sizes(result)
    assert len(result.nodes) == 12
    assert len(result.clusters) <= 3
    assert all(size >= 3 for size in sizes.values()) or len(result.nodes) < 3 * len(result.clusters)
    by_id = {n["id"]: n for n in result.nodes}
    assert sizes[by_id["zebra"]["cluster"]] >= 3
    assert sizes[by_id["quokka"]["cluster"]] >= 3


def test_tiny_corpus_collapses_to_single_cluster(config):
    graph = {"nodes": [make_node("a", "Human-AI teaming"), make_node("b", "Robot autonomy")]}
    result = merge_graph(graph, [], config)
    assert [c["id"] for c in result.clusters] == ["cluster-0"]
    assert {n["cluster"] for n in result.nodes} == {"cluster-0"}


def test_empty_corpus(config):
    result = merge_graph({"nodes": []}, [], config)
    assert result.to_dict() == {"clusters": [], "nodes": []}


def test_k_is_clamped_to_document_count(topic_graph):
    result = cluster_documents(graph_nodes_to_docs(topic_graph["nodes"][:5]), PipelineConfig(k=10, min_cluster_size=1))
    assert result.requested_k == 5
    assert result.merged_k <= 5


def test_graph_nodes_default_source_and_keep_payload():
    docs = graph_nodes_to_docs([{"id": "x", "title": "T", "year": 2021}])
    row = docs.iloc[0]
    assert row["source"] == "research"
    assert row["origin"] == "graph"
    assert row["summary"] == ""
    assert row["payload"] == {"id": "x", "title": "T", "year": 2021}


def test_ingest_items_without_date_use_current_year():
    from datetime import date

    docs = ingest_items_to_docs([{"id": "y", "title": "Human-AI teaming"}])
    assert docs.iloc[0]["payload"]["year"] == date.today().year
    assert docs.iloc[0]["payload"]["tags"] == []


def test_drop_duplicate_ids_keeps_first():
    docs = graph_nodes_to_docs([{"id": "x", "title": "first"}, {"id": "x", "title": "second"}])
    assert drop_duplicate_ids(docs)["title"].tolist() == ["first"]


def test_summarize_clusters(topic_graph, config):
    result = merge_graph(topic_graph, [], config)
    summary = summarize_clusters(result)
    assert sum(count for _, _, count in summary) == 12
    assert [cid for cid, _, _ in summary] == [c["id"] for c in result.clusters]
