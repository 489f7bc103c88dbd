# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from rjob_lib.batch.interface import BatchInterface
from rjob_lib.core.cancellation import Cancellation
from rjob_lib.core.config import CFG, CloudSettings
from rjob_lib.core.error import RemoteCommandError, StagingError, SubmissionError
from rjob_lib.orchestrate import Orchestrator
from rjob_lib.properties.job_spec import JobSpec
from rjob_lib.properties.states import StatusClass


class ScriptedBatch(BatchInterface):
    """
    Batch system replaying a fixed sequence of statuses.
    """

    STATUSES: list[str] = []
    SUBMIT_ERROR: Exception | None = None
    CLASSES = {
        "PENDING": StatusClass.PENDING,
        "RUNNING": StatusClass.RUNNING,
        "DONE": StatusClass.SUCCESS,
        "FAILED": StatusClass.FAILURE,
    }

    def __init__(self, session):
        super().__init__(session)
        self._statuses = iter(self.STATUSES)
        self.submitted = []
        self.queried = 0
        self.killed = []
        self.finished_from = []
        self.diagnosed = []
        # called whenever a status is returned
        self.on_status = None

    def jobSubmit(self, identity, notify, queue):
        self.submitted.append((identity, notify, queue))
        if self.SUBMIT_ERROR:
            raise self.SUBMIT_ERROR
        return "42"

    def getJobStatus(self, job_id):
        self.queried += 1
        status = next(self._statuses)
        if self.on_status:
            self.on_status(status)
        return status

    def _classifyToken(self, status):
        return self.CLASSES.get(status, StatusClass.UNKNOWN)

    def createJobProgressFile(self, job_id, target):
        pass

    def createFormattedRunningJobOutputFile(self, source, from_line, to_line):
        pass

    def createFinishedJobOutputFile(self, job_id, from_line):
        self.finished_from.append(from_line)

    def jobKill(self, job_id):
        self.killed.append(job_id)

    def printErrorLog(self, job_id):
        self.diagnosed.append(("log", job_id))

    def printExitCode(self, job_id):
        self.diagnosed.append(("code", job_id))


def scripted(statuses, submit_error=None):
    class Scripted(ScriptedBatch):
        STATUSES = statuses
        SUBMIT_ERROR = submit_error

    return Scripted


@pytest.fixture(autouse=True)
def no_waiting(monkeypatch):
    monkeypatch.setattr(CFG.polling, "seconds_per_minute", 0)


@pytest.fixture
def session(tmp_path):
    session = MagicMock()
    session.run_dir = tmp_path / "run"
    session.exec_dir = Path("/home/user")
    session.getWorkingDirectory.return_value = Path("/work")
    session.getExecutionDirectory.return_value = Path("/home/user")
    session.remotePath.side_effect = lambda name: Path("/work") / name
    session.probe.return_value = "0 jobProgress"
    session.readCommunicationFile.return_value = ""
    return session


@pytest.fixture
def shared_area(tmp_path):
    return tmp_path / "shared"


@pytest.fixture
def printed():
    return []


def make(spec, session, shared_area, printed, statuses, submit_error=None, **kwargs):
    return Orchestrator(
        spec,
        session,
        batch_system=scripted(statuses, submit_error),
        shared_area=shared_area,
        printer=printed.append,
        **kwargs,
    )


def test_run_streams_output_and_succeeds(session, shared_area, printed):
    session.probe.side_effect = ["0 f", "5 f", "5 f", "12 f"]
    session.readCommunicationFile.side_effect = ["", "a", "", "b", "final"]
    spec = JobSpec(script="run", files_to_download="md.log")
    statuses = ["PENDING", "PENDING"] + ["RUNNING"] * 4 + ["DONE"]

    orchestrator = make(spec, session, shared_area, printed, statuses)
    with patch.object(
        orchestrator._cleaner, "cleanup", wraps=orchestrator._cleaner.cleanup
    ) as mock_cleanup:
        assert orchestrator.run() is True

    batch = orchestrator._batch
    assert len(batch.submitted) == 1
    assert batch.queried == len(statuses)
    # a cycle prints the range it extracted only after a cycle that saw growth,
    # so the running prints are the empty ranges [0, 0) and [5, 5)
    assert printed == ["", "", "final"]
    assert batch.finished_from == [12]
    assert orchestrator.state.offset == 12
    assert batch.killed == []
    assert batch.diagnosed == []
    session.fetch.assert_called_once_with(
        [Path("/work/md.log")], session.run_dir
    )
    mock_cleanup.assert_called_once()
    assert orchestrator.state.outcome is True


def test_run_stages_before_submitting(session, shared_area, printed, tmp_path):
    source = tmp_path / "md.tpr"
    source.write_text("tpr")
    spec = JobSpec(script="gmx mdrun", files_to_send=str(source), notify=True)

    orchestrator = make(spec, session, shared_area, printed, ["DONE"])
    assert orchestrator.run() is True

    assert session.work_dir == Path("/work")
    identity = orchestrator.identity
    assert orchestrator._batch.submitted == [(identity, True, None)]
    session.execute.assert_any_call(f"chmod 755 /home/user/{identity} > /dev/null")
    # cleanup removed the script and the input copy from the shared area
    assert not (shared_area / str(identity)).exists()
    assert not (shared_area / "md.tpr").exists()
    session.execute.assert_any_call("rm -rf /work/*")


def test_run_uses_queue_of_matching_cloud(session, shared_area, printed, monkeypatch):
    monkeypatch.setattr(
        CFG,
        "clouds",
        [
            CloudSettings(name="cpu", labels=["cpu"], queue_type="short"),
            CloudSettings(name="gpu", labels=["gpu"], queue_type="gpu_queue"),
        ],
    )

    orchestrator = make(
        JobSpec(script="x"), session, shared_area, printed, ["DONE"], label="gpu"
    )
    orchestrator.run()

    assert orchestrator._batch.submitted[0][2] == "gpu_queue"


def test_run_cancelled_while_running(session, shared_area, printed):
    cancellation = Cancellation()
    spec = JobSpec(script="x", files_to_download="md.log")
    statuses = ["RUNNING", "RUNNING", "RUNNING", "DONE"]

    orchestrator = make(
        spec, session, shared_area, printed, statuses, cancellation=cancellation
    )
    batch = orchestrator._batch
    batch.on_status = lambda _: batch.queried == 2 and cancellation.cancel("test")

    with patch.object(
        orchestrator._cleaner, "cleanup", wraps=orchestrator._cleaner.cleanup
    ) as mock_cleanup:
        assert orchestrator.run() is False

    assert batch.killed == ["42"]
    assert orchestrator.state.status == BatchInterface.ABORTED
    assert batch.classifyStatus(orchestrator.state.status) == StatusClass.ABORTED
    assert batch.queried == 2
    assert batch.finished_from == []
    assert batch.diagnosed == []
    session.fetch.assert_not_called()
    mock_cleanup.assert_called_once()


def test_run_interrupted_by_keyboard(session, shared_area, printed):
    orchestrator = make(
        JobSpec(script="x"), session, shared_area, printed, ["RUNNING", "DONE"]
    )
    session.probe.side_effect = KeyboardInterrupt

    with patch.object(orchestrator._cleaner, "cleanup") as mock_cleanup:
        assert orchestrator.run() is False

    assert orchestrator._batch.killed == ["42"]
    mock_cleanup.assert_called_once()


def test_run_without_downloads(session, shared_area, printed):
    orchestrator = make(JobSpec(script="echo hi"), session, shared_area, printed, ["DONE"])
    written = {}

    def capture_push(files, remote_dir):
        for f in files:
            written[f.name] = f.read_text()

    session.push.side_effect = capture_push

    assert orchestrator.run() is True

    assert written[str(orchestrator.identity)] == "echo hi\n"
    assert "/dev/null" not in written[str(orchestrator.identity)]
    session.fetch.assert_not_called()


def test_run_submission_error(session, shared_area, printed):
    orchestrator = make(
        JobSpec(script="x"),
        session,
        shared_area,
        printed,
        ["DONE"],
        submit_error=SubmissionError("bsub failed"),
    )

    with (
        patch.object(orchestrator._cleaner, "cleanup") as mock_cleanup,
        patch("rjob_lib.orchestrate.orchestrator.logger.error") as mock_error,
    ):
        assert orchestrator.run() is False

    assert orchestrator._batch.queried == 0
    assert printed == []
    mock_cleanup.assert_called_once()
    mock_error.assert_called_once()


def test_run_staging_error_propagates_after_cleanup(session, shared_area, printed, tmp_path):
    spec = JobSpec(script="x", files_to_send=str(tmp_path / "missing.tpr"))
    orchestrator = make(spec, session, shared_area, printed, ["DONE"])

    with (
        patch.object(orchestrator._cleaner, "cleanup") as mock_cleanup,
        pytest.raises(StagingError),
    ):
        orchestrator.run()

    assert orchestrator._batch.submitted == []
    mock_cleanup.assert_called_once()


def test_run_failed_job_prints_diagnostics(session, shared_area, printed):
    orchestrator = make(
        JobSpec(script="x"), session, shared_area, printed, ["RUNNING", "FAILED"]
    )

    assert orchestrator.run() is False

    assert orchestrator._batch.diagnosed == [("log", "42"), ("code", "42")]
    assert orchestrator._batch.finished_from == [0]


def test_run_cancelled_before_submission(session, shared_area, printed):
    cancellation = Cancellation()
    cancellation.cancel("early")
    orchestrator = make(
        JobSpec(script="x"), session, shared_area, printed, ["DONE"], cancellation=cancellation
    )

    with patch.object(orchestrator._cleaner, "cleanup") as mock_cleanup:
        assert orchestrator.run() is False

    assert orchestrator._batch.submitted == []
    assert orchestrator._batch.killed == []
    mock_cleanup.assert_called_once()


def test_run_remote_failure_while_polling_propagates_after_cleanup(
    session, shared_area, printed
):
    orchestrator = make(
        JobSpec(script="x"), session, shared_area, printed, ["RUNNING", "DONE"]
    )
    session.probe.side_effect = RemoteCommandError("connection lost")

    with (
        patch.object(orchestrator._cleaner, "cleanup") as mock_cleanup,
        pytest.raises(RemoteCommandError),
    ):
        orchestrator.run()

    mock_cleanup.assert_called_once()


def test_batch_system_by_name(session, shared_area):
    with patch("rjob_lib.orchestrate.orchestrator.BatchMeta.obtain") as mock_obtain:
        mock_obtain.return_value = scripted(["DONE"])
        orchestrator = Orchestrator(
            JobSpec(script="x"), session, batch_system="LSF", shared_area=shared_area
        )

    mock_obtain.assert_called_once_with("LSF", session)
    assert isinstance(orchestrator._batch, ScriptedBatch)


def test_run_without_work_dir_uses_scratch_directory(session, shared_area, printed):
    session.work_dir = None
    session.createScratchDirectory.side_effect = lambda name: Path("/home/user") / name

    orchestrator = make(JobSpec(script="x"), session, shared_area, printed, ["DONE"])
    assert orchestrator.run() is True

    scratch = Path(f"/home/user/rjob_{orchestrator.identity}")
    session.createScratchDirectory.assert_called_once_with(
        f"rjob_{orchestrator.identity}"
    )
    session.getWorkingDirectory.assert_not_called()
    assert session.work_dir == scratch

    commands = [c.args[0] for c in session.execute.call_args_list]
    # only the scratch directory is removed, never the login directory
    assert f"rm -rf {scratch}" in commands
    assert all(not c.startswith("rm -rf") or c == f"rm -rf {scratch}" for c in commands)


def test_run_remote_failure_after_cancellation_kills_job(session, shared_area, printed):
    cancellation = Cancellation()
    orchestrator = make(
        JobSpec(script="x", files_to_download="md.log"),
        session,
        shared_area,
        printed,
        ["RUNNING", "DONE"],
        cancellation=cancellation,
    )

    def interrupted(command):
        # the signal setting the cancellation also kills the running ssh
        cancellation.cancel("interrupted")
        raise RemoteCommandError(f"Command '{command}' failed")

    session.probe.side_effect = interrupted

    with patch.object(orchestrator._cleaner, "cleanup") as mock_cleanup:
        assert orchestrator.run() is False

    assert orchestrator._batch.killed == ["42"]
    assert orchestrator.state.status == BatchInterface.ABORTED
    assert orchestrator._batch.diagnosed == []
    session.fetch.assert_not_called()
    mock_cleanup.assert_called_once()


def test_run_remote_failure_after_cancellation_during_staging(
    session, shared_area, printed
):
    cancellation = Cancellation()
    orchestrator = make(
        JobSpec(script="x"), session, shared_area, printed, ["DONE"], cancellation=cancellation
    )

    def interrupted(files, remote_dir):
        cancellation.cancel("interrupted")
        raise RemoteCommandError("rsync terminated")

    session.push.side_effect = interrupted

    with patch.object(orchestrator._cleaner, "cleanup") as mock_cleanup:
        assert orchestrator.run() is False

    assert orchestrator._batch.submitted == []
    assert orchestrator._batch.killed == []
    assert orchestrator.state.status == BatchInterface.ABORTED
    mock_cleanup.assert_called_once()
