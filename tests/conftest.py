import pytest

from radar.config import PipelineConfig

TOPICS = {
    "trust": [
        ("Trust calibration in human-AI teaming", "Explainability and transparency shape how operators calibrate trust."),
        ("Explainable interfaces for trust repair", "Transparency cues repair trust after agent errors in human-AI teaming."),
        ("Measuring trust calibration with explanations", "Operators calibrate trust when explanations expose agent confidence."),
        ("Over-trust and under-trust in AI-assisted decisions", "Calibration of trust improves with transparency and explanations."),
    ],
    "robot": [
        ("Shared autonomy for assistive robot arms", "Robot autonomy levels adapt to operator intent during manipulation."),
        ("Safety envelopes for collaborative robots", "Robot safety monitors limit autonomy near human coworkers."),
        ("Human-robot teaming on factory floors", "Collaborative robot autonomy and safety in shared workcells."),
        ("Teleoperation with adjustable robot autonomy", "Operators hand off control as robot autonomy increases safely."),
    ],
    "delegation": [
        ("Delegation workflows for human-agent teams", "Task delegation and workflow handoffs between people and agents."),
        ("When to delegate: mixed-initiative workflow design", "Delegation decisions within mixed-initiative workflow tools."),
        ("Workflow orchestration with AI teammates", "Teams redesign delegation of routine workflow steps to agents."),
        ("Auditing delegation in human-in-the-loop pipelines", "Delegation audits keep humans accountable for workflow outcomes."),
    ],
}


def make_node(node_id, title, summary="", **extra):
    node = {"id": node_id, "title": title, "summary": summary, "source": "research"}
    node.update(extra)
    return node


@pytest.fixture
def topic_graph():
    nodes = []
    for topic, docs in TOPICS.items():
        for i, (title, summary) in enumerate(docs):
            nodes.append(make_node(f"{topic}-{i}", title, summary, citation=f"Author {i} ({2020 + i}). {title}."))
    return {"clusters": [], "nodes": nodes}


@pytest.fixture
def config():
    return PipelineConfig(k=3, seed=42)
