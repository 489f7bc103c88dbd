# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from unittest.mock import MagicMock, patch

import pytest

from rjob_lib.batch import LSF
from rjob_lib.batch.interface import BatchInterface, BatchMeta
from rjob_lib.core.error import RJobError
from rjob_lib.properties.states import StatusClass


class _Available:
    def envName():
        return "AVAIL"

    def isAvailable(session):
        return True


class _Unavailable:
    def envName():
        return "UNAVAIL"

    def isAvailable(session):
        return False


def test_lsf_is_registered():
    assert BatchMeta.fromStr("LSF") is LSF
    assert str(LSF) == "LSF"


def test_from_str_unknown_raises():
    with pytest.raises(RJobError, match="No batch system registered as 'PBS'"):
        BatchMeta.fromStr("PBS")


def test_guess_returns_first_available():
    registry = {"UNAVAIL": _Unavailable, "AVAIL": _Available}
    with patch.dict(BatchMeta._registry, registry, clear=True):
        assert BatchMeta.guess(MagicMock()) is _Available


def test_guess_raises_if_nothing_available():
    with (
        patch.dict(BatchMeta._registry, {"UNAVAIL": _Unavailable}, clear=True),
        pytest.raises(RJobError, match="Could not guess a batch system"),
    ):
        BatchMeta.guess(MagicMock())


def test_obtain_prefers_explicit_name(monkeypatch):
    monkeypatch.setenv("RJOB_BATCH_SYSTEM", "AVAIL")
    registry = {"UNAVAIL": _Unavailable, "AVAIL": _Available}
    with patch.dict(BatchMeta._registry, registry, clear=True):
        assert BatchMeta.obtain("UNAVAIL", MagicMock()) is _Unavailable


def test_obtain_uses_environment_variable(monkeypatch):
    monkeypatch.setenv("RJOB_BATCH_SYSTEM", "UNAVAIL")
    registry = {"UNAVAIL": _Unavailable, "AVAIL": _Available}
    with patch.dict(BatchMeta._registry, registry, clear=True):
        assert BatchMeta.obtain(None, MagicMock()) is _Unavailable


def test_obtain_guesses_without_name(monkeypatch):
    monkeypatch.delenv("RJOB_BATCH_SYSTEM", raising=False)
    registry = {"UNAVAIL": _Unavailable, "AVAIL": _Available}
    with patch.dict(BatchMeta._registry, registry, clear=True):
        assert BatchMeta.obtain(None, MagicMock()) is _Available


def test_base_static_methods_not_implemented():
    with pytest.raises(NotImplementedError):
        BatchInterface.envName()
    with pytest.raises(NotImplementedError):
        BatchInterface.isAvailable(MagicMock())


@pytest.fixture
def lsf():
    return LSF(MagicMock())


_TOKENS = [
    "",
    "  ",
    "PEND",
    "PROV",
    "PSUSP",
    "USUSP",
    "SSUSP",
    "WAIT",
    "RUN",
    "DONE",
    "EXIT",
    "ZOMBI",
    "UNKWN",
    "ABORTED",
    "SOMETHING",
]


@pytest.mark.parametrize("status", _TOKENS)
def test_status_predicates_partition_consistently(lsf, status):
    success = lsf.jobCompletedSuccessfully(status)
    error = lsf.jobExitedWithErrors(status)
    aborted = lsf.classifyStatus(status) == StatusClass.ABORTED

    # never both success and error
    assert not (success and error)

    # every terminal status is exactly one of success, error, aborted
    if lsf.isEndStatus(status):
        assert [success, error, aborted].count(True) == 1
        assert not lsf.isRunningStatus(status)
    else:
        assert not (success or error or aborted)


def test_empty_status_is_not_terminal(lsf):
    assert lsf.classifyStatus("") == StatusClass.UNKNOWN
    assert not lsf.isEndStatus("")


def test_aborted_is_terminal_but_neither_success_nor_error(lsf):
    assert lsf.isEndStatus(BatchInterface.ABORTED)
    assert not lsf.jobCompletedSuccessfully(BatchInterface.ABORTED)
    assert not lsf.jobExitedWithErrors(BatchInterface.ABORTED)


def test_base_describe_status_returns_none():
    class Minimal(BatchInterface):
        def jobSubmit(self, identity, notify, queue):
            return "1"

        def getJobStatus(self, job_id):
            return ""

        def _classifyToken(self, status):
            return StatusClass.UNKNOWN

        def createJobProgressFile(self, job_id, target):
            pass

        def createFormattedRunningJobOutputFile(self, source, from_line, to_line):
            pass

        def createFinishedJobOutputFile(self, job_id, from_line):
            pass

        def jobKill(self, job_id):
            pass

        def printErrorLog(self, job_id):
            pass

        def printExitCode(self, job_id):
            pass

    assert Minimal(MagicMock()).describeStatus("RUN") is None
