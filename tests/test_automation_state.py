import pytest

from autoleadgen.automation_state import AutomationState, StateKind

S = AutomationState

ALL = [
    S.idle(),
    S.waiting_for_login(),
    S.running(),
    S.paused(),
    S.waiting_for_delay(12),
    S.processing_contact("Jane Doe"),
    S.completed(),
    S.error("boom"),
]


@pytest.mark.parametrize(
    "state,start,pause,resume,stop",
    [
        (S.idle(), True, False, False, False),
        (S.waiting_for_login(), False, False, False, True),
        (S.running(), False, True, False, True),
        (S.paused(), True, False, True, True),
        (S.waiting_for_delay(5), False, True, False, True),
        (S.processing_contact("A"), False, True, False, True),
        (S.completed(), True, False, False, False),
        (S.error("x"), True, False, False, False),
    ],
)
def test_transition_table(state, start, pause, resume, stop):
    assert (state.can_start, state.can_pause, state.can_resume, state.can_stop) == (start, pause, resume, stop)


def test_resume_only_from_paused():
    assert [s.kind for s in ALL if s.can_resume] == [StateKind.PAUSED]


def test_display_text():
    texts = [s.display_text for s in ALL]
    assert texts == [
        "Ready",
        "Waiting for LinkedIn login...",
        "Running",
        "Paused",
        "Next message in 12s",
        "Processing: Jane Doe",
        "Completed",
        "Error: boom",
    ]


def test_to_dict_carries_payload():
    assert S.waiting_for_delay(3).to_dict() == {"state": "waiting_for_delay", "text": "Next message in 3s", "seconds": 3}
    assert S.error("x").to_dict()["message"] == "x"
    assert S.idle() == S.idle()
