import asyncio
import random

import pytest

from ocr_submit.processor.progress import ProgressEstimator


class SequenceRandom:
    """Replays the given values, then repeats the last one."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)

    def random(self) -> float:
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


async def _wait_finished(handle) -> None:
    async def poll() -> None:
        while handle.running:
            await asyncio.sleep(0.001)

    await asyncio.wait_for(poll(), 2.0)


class TestProgressEstimator:
    @pytest.mark.asyncio
    async def test_values_increase_and_stop_at_cap(self) -> None:
        emitted: list[float] = []
        estimator = ProgressEstimator(interval_seconds=0.001, rng=SequenceRandom(0.5))
        handle = estimator.start(emitted.append)

        await _wait_finished(handle)

        # 7.5 per tick: 12 ticks reach 90
        assert len(emitted) == 12
        assert emitted == sorted(emitted)
        assert emitted[-1] == 90.0
        assert all(0 < value <= 90 for value in emitted)
        assert handle.value == 90.0

    @pytest.mark.asyncio
    async def test_overshoot_is_clamped_to_cap(self) -> None:
        emitted: list[float] = []
        estimator = ProgressEstimator(interval_seconds=0.001, rng=SequenceRandom(0.99))
        handle = estimator.start(emitted.append)

        await _wait_finished(handle)

        assert max(emitted) == 90.0
        assert 100 not in emitted

    @pytest.mark.asyncio
    async def test_random_increments_stay_within_bounds(self) -> None:
        emitted: list[float] = []
        estimator = ProgressEstimator(interval_seconds=0.001, rng=random.Random(7))
        handle = estimator.start(emitted.append)

        await _wait_finished(handle)

        steps = [b - a for a, b in zip([0.0] + emitted, emitted)]
        assert all(0 <= step < 15 for step in steps)
        assert emitted[-1] == 90.0

    @pytest.mark.asyncio
    async def test_zero_increment_does_not_decrease(self) -> None:
        emitted: list[float] = []
        estimator = ProgressEstimator(interval_seconds=0.001, rng=SequenceRandom(0.0, 0.0, 1.0))
        handle = estimator.start(emitted.append)

        await _wait_finished(handle)

        assert emitted[:2] == [0.0, 0.0]
        assert emitted == sorted(emitted)

    @pytest.mark.asyncio
    async def test_stop_halts_emission(self) -> None:
        emitted: list[float] = []
        estimator = ProgressEstimator(interval_seconds=0.001, rng=SequenceRandom(0.01))
        handle = estimator.start(emitted.append)

        while not emitted:
            await asyncio.sleep(0.001)
        handle.stop()
        count = len(emitted)
        await asyncio.sleep(0.02)

        assert not handle.running
        assert len(emitted) == count

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self) -> None:
        estimator = ProgressEstimator(interval_seconds=0.001)
        handle = estimator.start(lambda value: None)

        handle.stop()
        handle.stop()
        estimator.stop(handle)
        estimator.stop(None)

        assert not handle.running

    @pytest.mark.asyncio
    async def test_stop_after_completion_is_noop(self) -> None:
        estimator = ProgressEstimator(interval_seconds=0.001, rng=SequenceRandom(1.0))
        handle = estimator.start(lambda value: None)
        await _wait_finished(handle)

        handle.stop()

        assert handle.value == 90.0

    @pytest.mark.asyncio
    async def test_track_stops_on_error(self) -> None:
        estimator = ProgressEstimator(interval_seconds=0.001, rng=SequenceRandom(0.01))

        with pytest.raises(RuntimeError):
            async with estimator.track(lambda value: None) as handle:
                assert handle.running
                raise RuntimeError("boom")

        await asyncio.sleep(0)
        assert not handle.running

    @pytest.mark.asyncio
    async def test_failing_observer_ends_ticker(self) -> None:
        def observer(value: float) -> None:
            raise ValueError("bad observer")

        estimator = ProgressEstimator(interval_seconds=0.001)
        handle = estimator.start(observer)

        await _wait_finished(handle)

        assert not handle.running

    def test_start_requires_running_loop(self) -> None:
        with pytest.raises(RuntimeError):
            ProgressEstimator().start(lambda value: None)
