import pytest

from hardshipdocs.core.errors import RemoteCallError
from hardshipdocs.infrastructure.ocr.job_poller import JobPoller, JobState, PollPolicy


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def _scripted(statuses: list[dict[str, object]]):
    calls: list[str] = []

    def fetch(location: str) -> dict[str, object]:
        calls.append(location)
        return statuses[min(len(calls), len(statuses)) - 1]

    return fetch, calls


def test_polls_until_succeeded() -> None:
    clock = FakeClock()
    fetch, calls = _scripted(
        [
            {"status": "notStarted"},
            {"status": "running"},
            {"status": "succeeded", "analyzeResult": {"pages": []}},
        ]
    )
    poller = JobPoller(PollPolicy(interval_seconds=2.0), sleep=clock.sleep, clock=clock)

    outcome = poller.await_job("https://ocr.example/op/1", fetch)

    assert outcome.state is JobState.SUCCEEDED
    assert outcome.succeeded
    assert outcome.result == {"status": "succeeded", "analyzeResult": {"pages": []}}
    assert outcome.attempts == 3
    assert clock.sleeps == [2.0, 2.0]
    assert calls == ["https://ocr.example/op/1"] * 3


def test_unexpected_status_fails_without_result() -> None:
    clock = FakeClock()
    fetch, _ = _scripted([{"status": "running"}, {"status": "failed", "error": {"code": "InvalidRequest"}}])

    outcome = JobPoller(sleep=clock.sleep, clock=clock).await_job("loc", fetch)

    assert outcome.state is JobState.FAILED
    assert outcome.result is None
    assert outcome.last_status == "failed"


def test_deadline_aborts_a_job_that_never_finishes() -> None:
    clock = FakeClock()
    fetch, calls = _scripted([{"status": "running"}])
    poller = JobPoller(PollPolicy(interval_seconds=2.0, timeout_seconds=10.0), sleep=clock.sleep, clock=clock)

    outcome = poller.await_job("loc", fetch)

    assert outcome.state is JobState.ABORTED
    assert outcome.result is None
    assert clock.now <= 10.0
    assert len(calls) == 6


def test_backoff_grows_interval_up_to_cap() -> None:
    clock = FakeClock()
    fetch, _ = _scripted([{"status": "running"}] * 5 + [{"status": "succeeded"}])
    policy = PollPolicy(interval_seconds=1.0, timeout_seconds=None, backoff_factor=2.0, max_interval_seconds=5.0)

    JobPoller(policy, sleep=clock.sleep, clock=clock).await_job("loc", fetch)

    assert clock.sleeps == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_request_errors_propagate() -> None:
    def fetch(location: str) -> dict[str, object]:
        raise RemoteCallError("connection reset")

    with pytest.raises(RemoteCallError):
        JobPoller(sleep=lambda _s: None).await_job("loc", fetch)
