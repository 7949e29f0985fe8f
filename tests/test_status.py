import pytest

from a2a_chat.runtime.status import (
    LABEL_RUNNING_TOOL,
    NoOp,
    Phase,
    PrintInformational,
    RetargetIndicator,
    StopIndicator,
    classify,
    detect_phase,
)


def test_tool_started_retargets_indicator():
    assert classify("ToolCalls:InProgress") == RetargetIndicator(label=LABEL_RUNNING_TOOL)


def test_tool_started_marker_matches_inside_longer_text():
    assert classify("agent: ToolCalls:InProgress (search)") == RetargetIndicator(label="running tool")


def test_tool_finished_stops_indicator():
    assert classify("ToolsCalls:Completed") == StopIndicator()


def test_informational_message():
    assert classify("Thinking about it") == PrintInformational(message="Thinking about it")


@pytest.mark.parametrize("msg", ["", None, "   "])
def test_empty_message_is_noop(msg):
    assert classify(msg) == NoOp()


def test_matching_is_case_sensitive():
    assert classify("toolcalls:inprogress") == PrintInformational(message="toolcalls:inprogress")


def test_started_wins_when_both_markers_present():
    msg = "ToolsCalls:Completed then ToolCalls:InProgress"
    assert detect_phase(msg) is Phase.TOOL_STARTED
    assert isinstance(classify(msg), RetargetIndicator)


def test_classification_is_deterministic():
    for msg in ["ToolCalls:InProgress", "ToolsCalls:Completed", "hello", ""]:
        assert classify(msg) == classify(msg)
