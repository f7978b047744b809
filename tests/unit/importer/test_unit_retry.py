# tests/unit/importer/test_unit_retry.py - v1
"""Tests for importer/retry.py: backoff schedule and retry classification."""

from __future__ import annotations

import pytest

from recipeai.config.settings import Settings
from recipeai.core.errors import ProviderError, ValidationError
from recipeai.importer.retry import RetryConfig, RetryExhausted, compute_delay, with_retry


class FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class Flaky:
    """Fails ``failures`` times, then returns ``value``."""

    def __init__(self, failures: int, exc: Exception | None = None, value: str = "ok") -> None:
        self.failures = failures
        self.exc = exc or ProviderError("temporary")
        self.value = value
        self.calls = 0

    async def __call__(self, *args, **kwargs) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return self.value


class TestComputeDelay:
    def test_exponential(self):
        cfg = RetryConfig(base_delay_s=1.0, backoff_factor=2.0)
        assert [compute_delay(cfg, n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_from_settings(self):
        s = Settings(_env_file=None, import_max_retries=5, import_retry_delay_s=0.5)
        cfg = RetryConfig.from_settings(s)
        assert cfg.max_attempts == 5
        assert cfg.base_delay_s == 0.5

    def test_from_settings_zero_retries_still_calls_once(self):
        s = Settings(_env_file=None, import_max_retries=0)
        assert RetryConfig.from_settings(s).max_attempts == 1


class TestWithRetry:

    @pytest.mark.asyncio
    async def test_first_try(self):
        fn, sleep = Flaky(0), FakeSleep()
        assert await with_retry(fn, sleep=sleep) == "ok"
        assert fn.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers(self):
        fn, sleep = Flaky(2), FakeSleep()
        cfg = RetryConfig(max_attempts=3, base_delay_s=1.0)
        assert await with_retry(fn, label="x", config=cfg, sleep=sleep) == "ok"
        assert fn.calls == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted(self):
        fn, sleep = Flaky(10), FakeSleep()
        cfg = RetryConfig(max_attempts=3, base_delay_s=0.1)
        with pytest.raises(RetryExhausted) as exc:
            await with_retry(fn, label="chunk 1/2", config=cfg, sleep=sleep)
        assert exc.value.attempts == 3
        assert exc.value.label == "chunk 1/2"
        assert isinstance(exc.value.last_error, ProviderError)
        assert fn.calls == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_validation_error_not_retried(self):
        fn, sleep = Flaky(10, exc=ValidationError("bad record")), FakeSleep()
        with pytest.raises(ValidationError):
            await with_retry(fn, sleep=sleep)
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_passes_arguments(self):
        seen = {}

        async def fn(a, b, *, c):
            seen.update(a=a, b=b, c=c)
            return "done"

        assert await with_retry(fn, 1, 2, c=3, sleep=FakeSleep()) == "done"
        assert seen == {"a": 1, "b": 2, "c": 3}
