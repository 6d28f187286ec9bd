from __future__ import annotations

import httpx
import openai
import pytest

from studyplanner.services.retry import retry_with_backoff

REQUEST = httpx.Request("POST", "https://llm.example.test/chat/completions")


def _rate_limit_error():
    return openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None)


class _Flaky:
    def __init__(self, failures, result="done"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


def test_retries_rate_limits_with_doubling_delay():
    sleeps: list[float] = []
    notices: list[tuple[int, int]] = []
    fn = _Flaky([_rate_limit_error(), _rate_limit_error()])

    result = retry_with_backoff(
        fn,
        max_attempts=3,
        initial_delay=1.0,
        sleep=sleeps.append,
        on_retry=lambda attempt, total: notices.append((attempt, total)),
    )

    assert result == "done"
    assert fn.calls == 3
    assert sleeps == [1.0, 2.0]
    assert notices == [(1, 3), (2, 3)]


def test_gives_up_after_last_attempt():
    sleeps: list[float] = []
    fn = _Flaky([_rate_limit_error() for _ in range(5)])

    with pytest.raises(openai.RateLimitError):
        retry_with_backoff(fn, max_attempts=3, initial_delay=0.5, sleep=sleeps.append)

    assert fn.calls == 3
    assert sleeps == [0.5, 1.0]


def test_other_errors_are_not_retried():
    sleeps: list[float] = []
    fn = _Flaky([ValueError("bad output")])

    with pytest.raises(ValueError):
        retry_with_backoff(fn, sleep=sleeps.append)

    assert fn.calls == 1
    assert sleeps == []


def test_server_errors_are_not_retried():
    error = openai.InternalServerError("down", response=httpx.Response(500, request=REQUEST), body=None)
    fn = _Flaky([error])

    with pytest.raises(openai.InternalServerError):
        retry_with_backoff(fn, sleep=lambda _: None)

    assert fn.calls == 1
