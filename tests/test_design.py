from radar.design import infer_design_metadata
from radar.lexicon import Lexicon


def test_levers_and_intents_from_keywords():
    meta = infer_design_metadata("Trust calibration in teams", "")
    assert meta.design_levers == ["interface"]
    assert meta.designer_intents == ["team_structure"]


def test_fallback_question_uses_first_lever():
    meta = infer_design_metadata("Governance of automation", "")
    assert meta.design_levers == ["capability_boundary", "governance"]
    assert meta.design_question == "How might design support capability boundary in human-AI collaboration?"


def test_question_extracted_from_text():
    meta = infer_design_metadata("Delegating tasks", "How might teams delegate tasks to agents? We study this.")
    assert meta.design_question == "how might teams delegate tasks to agents?"


def test_no_keywords_no_question():
    meta = infer_design_metadata("Quarterly earnings", "Revenue grew")
    assert meta.design_levers == []
    assert meta.designer_intents == []
    assert meta.design_question == ""


def test_custom_keyword_maps():
    lexicon = Lexicon(lever_keywords={"sensing": ("lidar",)}, intent_keywords={})
    meta = infer_design_metadata("Lidar fusion", None, lexicon)
    assert meta.design_levers == ["sensing"]
    assert meta.designer_intents == []
    assert meta.design_question == "How might design support sensing in human-AI collaboration?"
