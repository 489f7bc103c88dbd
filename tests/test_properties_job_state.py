# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import re

import pytest

from rjob_lib.properties.identity import JobIdentity
from rjob_lib.properties.job_state import JobState
from rjob_lib.properties.states import StatusClass


def test_job_state_defaults():
    state = JobState()

    assert state.status == ""
    assert state.offset == 0
    assert state.pending_print is True
    assert state.handle is None
    assert state.outcome is None


def test_advance_moves_forward():
    state = JobState()

    assert state.advance(5) is True
    assert state.offset == 5


@pytest.mark.parametrize("line_count", [0, 3, 5])
def test_advance_never_moves_backward(line_count):
    state = JobState(offset=5)

    assert state.advance(line_count) is False
    assert state.offset == 5


def test_advance_offset_is_monotonic_and_bounded():
    state = JobState()
    observed = [0, 4, 2, 9, 9, 1, 12, 7]

    offsets = []
    for n in observed:
        state.advance(n)
        offsets.append(state.offset)

    assert offsets == sorted(offsets)
    assert state.offset == max(observed)


def test_identity_generate_is_unique_and_prefixed():
    first = JobIdentity.generate()
    second = JobIdentity.generate()

    assert first != second
    assert re.fullmatch(r"JOB-[0-9a-f\-]{36}", str(first))


@pytest.mark.parametrize(
    "status_class, terminal",
    [
        (StatusClass.PENDING, False),
        (StatusClass.RUNNING, False),
        (StatusClass.SUCCESS, True),
        (StatusClass.FAILURE, True),
        (StatusClass.ABORTED, True),
        (StatusClass.UNKNOWN, False),
    ],
)
def test_status_class_is_terminal(status_class, terminal):
    assert status_class.isTerminal() is terminal


def test_status_class_str():
    assert str(StatusClass.RUNNING) == "running"
