import yaml

from manuscript_reviser.analysis import AnalysisRecord, ChecklistItem, gap_details, load_analysis, parse_analysis

ANALYSIS_YAML = """
dimension_names:
  tension: Tension
chapters:
  - title: Arrival
    beat: Opening Image
    scores: {tension: 2.0}
    ideal: {tension: 3.0}
  - title: Storm
    beat: Midpoint
    scores: {tension: 6.0}
    ideal: {tension: 5.8}
    checklist:
      - beat: Midpoint
        time: 50
        priority: high
        adjustments:
          - {dimension_name: Tension, direction: increase, amount: 1, actual: 6, ideal: 7}
  - title: Harbor
    beat: Finale
revision_items:
  - {beat: Setup, time: 10, priority: low}
  - {beat: Fun and Games, time: 60, priority: medium}
  - {beat: Final Image, time: 95, priority: high}
  - {beat: "Mid-point", time: 20, priority: low}
"""


def test_parse_analysis():
    analysis = parse_analysis(yaml.safe_load(ANALYSIS_YAML))
    assert [r.title for r in analysis.records] == ["Arrival", "Storm", "Harbor"]
    assert analysis.records[0].dimension_names == {"tension": "Tension"}
    assert analysis.records[1].checklist[0].adjustments[0].amount == 1.0
    assert len(analysis.revision_items) == 4


def test_load_analysis(tmp_path):
    path = tmp_path / "analysis.yml"
    path.write_text(ANALYSIS_YAML, encoding="utf-8")
    assert len(load_analysis(str(path)).records) == 3


def test_time_percent_from_position():
    analysis = parse_analysis(yaml.safe_load(ANALYSIS_YAML))
    assert [analysis.time_percent(r) for r in analysis.records] == [33, 67, 100]


def test_items_for_uses_story_window_and_beat():
    analysis = parse_analysis(yaml.safe_load(ANALYSIS_YAML))
    first, middle, last = analysis.records

    assert [i.beat for i in analysis.items_for(first)] == ["Setup", "Mid-point"]
    # own item first, then the global item in its window, then the beat match
    assert [i.beat for i in analysis.items_for(middle)] == ["Midpoint", "Fun and Games", "Mid-point"]


def test_items_for_record_without_scores_is_own_checklist():
    analysis = parse_analysis(yaml.safe_load(ANALYSIS_YAML))
    assert analysis.items_for(analysis.records[2]) == []


def test_gap_details_threshold():
    record = AnalysisRecord(title="x", scores={"a": 4.0, "b": 5.4, "c_d": 9.0}, ideal={"a": 5.0, "b": 5.0, "c_d": 8.5})
    details = gap_details(record)
    assert [d.dimension for d in details] == ["a", "c_d"]
    assert details[0].direction == "increase"
    assert details[1].direction == "reduce"
    assert details[1].dimension_name == "C D"


def test_checklist_item_defaults():
    item = ChecklistItem(beat="Setup", time=10, priority="low")
    assert item.adjustments == []
