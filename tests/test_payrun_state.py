"""Unit tests for the payrun transition table."""
import itertools

import pytest

from hrpay.domain.exceptions import InvalidTransitionError
from hrpay.domain.payrun_state import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    PayrunAction,
    PayrunStatus,
    allowed_actions,
    next_status,
)

S, A = PayrunStatus, PayrunAction


@pytest.mark.parametrize(
    "current, action, expected",
    [
        (S.DRAFT, A.COMPUTE, S.COMPUTED),
        (S.COMPUTED, A.COMPUTE, S.COMPUTED),
        (S.COMPUTED, A.RECOMPUTE, S.COMPUTED),
        (S.COMPUTED, A.VALIDATE, S.VALIDATED),
        (S.VALIDATED, A.FINALIZE, S.DONE),
        (S.DRAFT, A.CANCEL, S.CANCELLED),
        (S.COMPUTED, A.CANCEL, S.CANCELLED),
    ],
)
def test_allowed_transitions(current, action, expected):
    assert next_status(current, action) is expected


@pytest.mark.parametrize(
    "current, action",
    [
        (S.DRAFT, A.VALIDATE),
        (S.DRAFT, A.RECOMPUTE),
        (S.VALIDATED, A.CANCEL),
        (S.VALIDATED, A.COMPUTE),
        (S.DONE, A.CANCEL),
        (S.CANCELLED, A.COMPUTE),
    ],
)
def test_disallowed_transitions_name_current_and_requested_state(current, action):
    with pytest.raises(InvalidTransitionError) as exc_info:
        next_status(current, action)
    err = exc_info.value
    assert err.code == "INVALID_TRANSITION"
    assert err.current == current.value
    assert err.action == action.value
    assert current.value in err.message


def test_terminal_statuses_have_no_outgoing_transitions():
    for status in TERMINAL_STATUSES:
        assert allowed_actions(status) == []
        for action in PayrunAction:
            with pytest.raises(InvalidTransitionError):
                next_status(status, action)


def test_every_transition_stays_inside_the_status_set():
    for status, action in itertools.product(PayrunStatus, PayrunAction):
        try:
            target = next_status(status, action)
        except InvalidTransitionError:
            assert (status, action) not in TRANSITIONS
        else:
            assert target in set(PayrunStatus)


def test_cancel_only_from_draft_or_computed():
    sources = {status for (status, action) in TRANSITIONS if action is A.CANCEL}
    assert sources == {S.DRAFT, S.COMPUTED}


def test_accepts_raw_values():
    assert next_status("draft", "compute") is S.COMPUTED
