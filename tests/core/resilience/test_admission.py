"""
Tests for the admission limiter.

Test Coverage:
    - Initial state admits immediately
    - Minimum gap after notify_done
    - pause() overriding the pending instant
    - pause() issued while a caller is waiting
    - notify_done() never shortening a pending pause
    - Concurrent waiters sharing one limiter
    - Statistics
"""

import asyncio

import pytest

from core.resilience.admission import DEFAULT_MIN_GAP_SECONDS, AdmissionLimiter


class TestAdmissionLimiterBasics:
    def test_default_gap(self):
        limiter = AdmissionLimiter()
        assert limiter.min_gap_seconds == DEFAULT_MIN_GAP_SECONDS == 0.3

    def test_negative_gap_rejected(self):
        with pytest.raises(ValueError, match="min_gap_seconds"):
            AdmissionLimiter(min_gap_seconds=-1)

    @pytest.mark.asyncio
    async def test_first_wait_returns_immediately(self, fake_clock):
        limiter = AdmissionLimiter(clock=fake_clock)

        await limiter.wait()

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_zero_gap_never_waits(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0, clock=fake_clock)

        for _ in range(3):
            await limiter.wait()
            limiter.notify_done()

        assert fake_clock.sleeps == []


class TestMinimumGap:
    @pytest.mark.asyncio
    async def test_wait_after_notify_done_sleeps_for_gap(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0.3, clock=fake_clock)

        limiter.notify_done()
        await limiter.wait()

        assert fake_clock.sleeps == [pytest.approx(0.3)]

    @pytest.mark.asyncio
    async def test_elapsed_time_counts_toward_gap(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0.3, clock=fake_clock)

        limiter.notify_done()
        fake_clock.advance(0.2)
        await limiter.wait()

        assert fake_clock.sleeps == [pytest.approx(0.1)]

    @pytest.mark.asyncio
    async def test_no_wait_once_gap_has_passed(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0.3, clock=fake_clock)

        limiter.notify_done()
        fake_clock.advance(1.0)
        await limiter.wait()

        assert fake_clock.sleeps == []

    def test_notify_done_sets_next_at(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0.3, clock=fake_clock)

        limiter.notify_done()

        assert limiter.next_at == pytest.approx(fake_clock.now() + 0.3)


class TestPause:
    def test_pause_sets_next_at(self, fake_clock):
        limiter = AdmissionLimiter(clock=fake_clock)

        limiter.pause(20)

        assert limiter.next_at == pytest.approx(fake_clock.now() + 20)

    def test_pause_overrides_longer_pending_instant(self, fake_clock):
        limiter = AdmissionLimiter(clock=fake_clock)

        limiter.pause(30)
        limiter.pause(5)

        assert limiter.next_at == pytest.approx(fake_clock.now() + 5)

    def test_negative_pause_rejected(self, fake_clock):
        limiter = AdmissionLimiter(clock=fake_clock)

        with pytest.raises(ValueError, match="pause duration"):
            limiter.pause(-1)

    @pytest.mark.asyncio
    async def test_wait_honors_pause(self, fake_clock):
        limiter = AdmissionLimiter(clock=fake_clock)

        limiter.pause(20)
        await limiter.wait()

        assert sum(fake_clock.sleeps) == pytest.approx(20)

    def test_notify_done_keeps_pending_pause(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0.3, clock=fake_clock)
        start = fake_clock.now()

        limiter.pause(30)
        limiter.notify_done()

        assert limiter.next_at == pytest.approx(start + 30)

    def test_notify_done_after_pause_expires_uses_gap(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0.3, clock=fake_clock)

        limiter.pause(5)
        fake_clock.advance(10)
        limiter.notify_done()

        assert limiter.next_at == pytest.approx(fake_clock.now() + 0.3)

    @pytest.mark.asyncio
    async def test_completed_call_does_not_shorten_cool_down(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0.3, clock=fake_clock)

        limiter.pause(30)
        fake_clock.advance(1)
        limiter.notify_done()
        await limiter.wait()

        assert sum(fake_clock.sleeps) == pytest.approx(29)

    @pytest.mark.asyncio
    async def test_pause_during_wait_extends_it(self):
        class PausingClock:
            """Issues a pause from another caller during the first sleep."""

            def __init__(self):
                self.current = 1000.0
                self.sleeps = []
                self.limiter = None

            def now(self):
                return self.current

            async def sleep(self, seconds):
                self.sleeps.append(seconds)
                self.current += seconds
                if len(self.sleeps) == 1:
                    self.limiter.pause(10)

        clock = PausingClock()
        limiter = AdmissionLimiter(min_gap_seconds=0.3, clock=clock)
        clock.limiter = limiter

        limiter.notify_done()
        start = clock.now()
        await limiter.wait()

        assert clock.sleeps == [pytest.approx(0.3), pytest.approx(10)]
        assert clock.now() - start == pytest.approx(10.3)


class TestConcurrentWaiters:
    @pytest.mark.asyncio
    async def test_all_waiters_released_after_pause(self, fake_clock):
        limiter = AdmissionLimiter(clock=fake_clock)
        limiter.pause(15)
        release_times = []

        async def caller():
            await limiter.wait()
            release_times.append(fake_clock.now())

        await asyncio.gather(*(caller() for _ in range(3)))

        assert len(release_times) == 3
        paused_until = limiter.next_at
        assert all(t >= paused_until for t in release_times)


class TestStats:
    def test_get_stats(self, fake_clock):
        limiter = AdmissionLimiter(min_gap_seconds=0.5, clock=fake_clock, name="api")
        limiter.pause(2)

        stats = limiter.get_stats()

        assert stats["name"] == "api"
        assert stats["min_gap_seconds"] == 0.5
        assert stats["next_at"] == pytest.approx(fake_clock.now() + 2)
        assert stats["remaining_delay_seconds"] == pytest.approx(2)

    def test_remaining_delay_never_negative(self, fake_clock):
        limiter = AdmissionLimiter(clock=fake_clock)
        fake_clock.advance(100)

        assert limiter.get_stats()["remaining_delay_seconds"] == 0.0
