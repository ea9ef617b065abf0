import asyncio

import pytest

from src.application.utils.debounce import DebouncedValue


class TestDebouncedValue:
    @pytest.mark.asyncio
    async def test_burst_propagates_only_last_value(self) -> None:
        seen: list[str] = []
        debounced = DebouncedValue("", 20, on_change=seen.append)

        for text in ("s", "so", "sof", "sofa"):
            debounced.set(text)
            await asyncio.sleep(0.005)
        assert debounced.value == ""
        assert debounced.pending is True

        await asyncio.sleep(0.05)

        assert seen == ["sofa"]
        assert debounced.value == "sofa"
        assert debounced.pending is False

    @pytest.mark.asyncio
    async def test_separate_bursts_each_propagate(self) -> None:
        seen: list[str] = []
        debounced = DebouncedValue("", 10, on_change=seen.append)

        debounced.set("a")
        await asyncio.sleep(0.04)
        debounced.set("b")
        await asyncio.sleep(0.04)

        assert seen == ["a", "b"]

    @pytest.mark.asyncio
    async def test_settling_on_current_value_does_not_notify(self) -> None:
        seen: list[str] = []
        debounced = DebouncedValue("chair", 10, on_change=seen.append)

        debounced.set("chairs")
        debounced.set("chair")
        await asyncio.sleep(0.04)

        assert seen == []
        assert debounced.value == "chair"

    @pytest.mark.asyncio
    async def test_set_now_bypasses_delay_and_cancels_pending(self) -> None:
        seen: list[str] = []
        debounced = DebouncedValue("", 10, on_change=seen.append)

        debounced.set("pending")
        debounced.set_now("lamp")
        await asyncio.sleep(0.04)

        assert seen == ["lamp"]
        assert debounced.value == "lamp"

    @pytest.mark.asyncio
    async def test_close_cancels_timer_and_rejects_updates(self) -> None:
        seen: list[str] = []
        debounced = DebouncedValue("", 10, on_change=seen.append)

        debounced.set("desk")
        debounced.close()
        await asyncio.sleep(0.04)

        assert seen == []
        assert debounced.pending is False
        with pytest.raises(RuntimeError):
            debounced.set("again")

    def test_set_requires_running_loop(self) -> None:
        debounced = DebouncedValue("", 10)
        with pytest.raises(RuntimeError):
            debounced.set("x")
