"""Tests for the command classifier, active-command tracker and repeat executor."""

from dataclasses import dataclass, field

import pytest

from custom_components.bond_home.dispatch import (
    ActiveCommandTracker,
    CommunicationMode,
    RepeatExecutor,
    RepeatPolicy,
    should_repeat,
)

ONE_WAY = CommunicationMode.ONE_WAY
TWO_WAY = CommunicationMode.TWO_WAY


@dataclass
class Settings:
    communication_mode: CommunicationMode = ONE_WAY
    repeat_policy: RepeatPolicy = field(default_factory=lambda: RepeatPolicy(3, 500))


class Counter:
    def __init__(self, tracker: ActiveCommandTracker | None = None) -> None:
        self.calls = 0
        self.seen_active: list[str | None] = []
        self._tracker = tracker

    async def __call__(self) -> None:
        self.calls += 1
        if self._tracker is not None:
            active = self._tracker.active
            self.seen_active.append(active.name if active else None)


def make_executor(fake_sleep, settings: Settings | None = None) -> RepeatExecutor:
    settings = settings or Settings()
    return RepeatExecutor(ActiveCommandTracker("test"), lambda: settings, sleep=fake_sleep, name="test")


class TestShouldRepeat:
    @pytest.mark.parametrize("command", ["open", "stop", "setSpeed", "lightOn", "whatever"])
    def test_two_way_never_repeats(self, command):
        assert should_repeat(command, TWO_WAY) is False

    @pytest.mark.parametrize(
        "command",
        ["stop", "STOP", "hold", "lightOn", "LIGHTOFF", "setLightLevel", "setBrightness"],
    )
    def test_non_repeatable_is_case_insensitive(self, command):
        assert should_repeat(command, ONE_WAY) is False

    @pytest.mark.parametrize("command", ["open", "close", "setSpeed", "breeze", "frobnicate", ""])
    def test_one_way_repeats_everything_else(self, command):
        assert should_repeat(command, ONE_WAY) is True

    def test_custom_set(self):
        assert should_repeat("open", ONE_WAY, {"open"}) is False
        assert should_repeat("stop", ONE_WAY, {"open"}) is True


class TestRepeatPolicy:
    def test_defaults(self):
        policy = RepeatPolicy()
        assert policy.count == 3
        assert policy.delay_seconds == 0.5

    @pytest.mark.parametrize("count, delay_ms", [(0, 500), (6, 500), (3, 99), (3, 10001)])
    def test_out_of_range_rejected(self, count, delay_ms):
        with pytest.raises(ValueError):
            RepeatPolicy(count, delay_ms)

    def test_clamped(self):
        assert RepeatPolicy.clamped(9, 50) == RepeatPolicy(5, 100)
        assert RepeatPolicy.clamped(-1, 20000) == RepeatPolicy(1, 10000)
        assert RepeatPolicy.clamped("2", "750") == RepeatPolicy(2, 750)


class TestActiveCommandTracker:
    def test_begin_and_clear(self):
        tracker = ActiveCommandTracker()
        entry = tracker.begin("open")

        assert tracker.is_active("open")
        assert tracker.is_active("open", entry.generation)
        assert not tracker.is_active("close")

        tracker.clear("open", entry.generation)
        assert tracker.active is None

    def test_begin_other_command_replaces(self):
        tracker = ActiveCommandTracker()
        tracker.begin("open")
        tracker.begin("close")

        assert tracker.active.name == "close"
        assert not tracker.is_active("open")

    def test_stale_clear_is_ignored(self):
        tracker = ActiveCommandTracker()
        tracker.begin("open")
        tracker.begin("close")

        tracker.clear("open")
        assert tracker.active.name == "close"

    def test_same_name_begin_gets_new_generation(self):
        tracker = ActiveCommandTracker()
        first = tracker.begin("open")
        second = tracker.begin("open")

        assert second.generation > first.generation
        assert second.started_at >= first.started_at
        assert not tracker.is_active("open", first.generation)
        assert tracker.is_active("open", second.generation)

        tracker.clear("open", first.generation)
        assert tracker.active == second

    def test_preempt(self):
        tracker = ActiveCommandTracker()
        entry = tracker.begin("open")

        assert tracker.preempt("open") is None
        assert tracker.active == entry
        assert tracker.preempt("stop") == entry
        assert tracker.active is None

    def test_reset(self):
        tracker = ActiveCommandTracker()
        tracker.begin("open")
        tracker.reset()
        assert tracker.active is None


class TestRepeatExecutor:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["open", "stop", "lightOn", "setSpeed"])
    async def test_two_way_runs_once(self, fake_sleep, command):
        executor = make_executor(fake_sleep, Settings(communication_mode=TWO_WAY))
        action = Counter(executor.tracker)

        await executor.execute(command, action)

        assert action.calls == 1
        assert action.seen_active == [None]
        assert fake_sleep.delays == []
        assert executor.tracker.active is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["stop", "hold", "lightOn", "lightOff", "setLightLevel", "setBrightness"])
    async def test_non_repeatable_runs_once_without_tracking(self, fake_sleep, command):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(5, 500)))
        action = Counter(executor.tracker)

        await executor.execute(command, action)

        assert action.calls == 1
        assert action.seen_active == [None]
        assert fake_sleep.delays == []
        assert executor.tracker.active is None

    @pytest.mark.asyncio
    async def test_one_way_repeats_count_times(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(4, 750)))
        action = Counter(executor.tracker)

        await executor.execute("Open", action)

        assert action.calls == 4
        assert action.seen_active == ["open"] * 4
        assert fake_sleep.delays == [0.75] * 3
        assert executor.tracker.active is None

    @pytest.mark.asyncio
    async def test_count_of_one_does_not_sleep(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(1, 500)))
        action = Counter()

        await executor.execute("open", action)

        assert action.calls == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_settings_are_read_per_command(self, fake_sleep):
        settings = Settings(communication_mode=TWO_WAY)
        executor = make_executor(fake_sleep, settings)
        action = Counter()

        await executor.execute("open", action)
        settings.communication_mode = ONE_WAY
        await executor.execute("open", action)

        assert action.calls == 1 + 3

    @pytest.mark.asyncio
    async def test_newer_command_preempts_running_sequence(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(5, 500)))
        first = Counter()
        second = Counter(executor.tracker)

        async def issue_second() -> None:
            await executor.execute("close", second)

        # second sleep of the first command: after its 2nd attempt, before its 3rd
        fake_sleep.hooks[2] = issue_second

        await executor.execute("open", first)

        assert first.calls == 2
        assert second.calls == 5
        assert second.seen_active == ["close"] * 5
        assert executor.tracker.active is None

    @pytest.mark.asyncio
    async def test_preempted_command_leaves_newer_entry_alone(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(3, 500)))
        first = Counter()

        async def take_over() -> None:
            executor.tracker.begin("close")

        fake_sleep.hooks[1] = take_over

        await executor.execute("open", first)

        assert first.calls == 1
        assert executor.tracker.active.name == "close"

    @pytest.mark.asyncio
    async def test_same_command_reissued_restarts(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(3, 500)))
        first = Counter()
        second = Counter()

        async def reissue() -> None:
            await executor.execute("open", second)

        fake_sleep.hooks[1] = reissue

        await executor.execute("open", first)

        assert first.calls == 1
        assert second.calls == 3
        assert executor.tracker.active is None

    @pytest.mark.asyncio
    async def test_non_repeatable_command_cuts_sequence_short(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(5, 500)))
        first = Counter()
        light = Counter()

        async def light_on() -> None:
            await executor.execute("lightOn", light)

        fake_sleep.hooks[1] = light_on

        await executor.execute("setSpeed", first)

        assert first.calls == 1
        assert light.calls == 1
        assert executor.tracker.active is None

    @pytest.mark.asyncio
    async def test_execute_once_ignores_mode_and_preempts(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(5, 500)))
        opening = Counter()
        stop = Counter()

        async def issue_stop() -> None:
            await executor.execute_once("stop", stop)

        fake_sleep.hooks[1] = issue_stop

        await executor.execute("open", opening)

        assert opening.calls == 1
        assert stop.calls == 1
        assert executor.tracker.active is None

    @pytest.mark.asyncio
    async def test_failed_attempt_does_not_stop_repeats(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(repeat_policy=RepeatPolicy(3, 500)))
        calls = []

        async def flaky() -> None:
            calls.append(len(calls) + 1)
            if len(calls) == 1:
                raise RuntimeError("hub unreachable")

        with pytest.raises(RuntimeError, match="hub unreachable"):
            await executor.execute("open", flaky)

        assert calls == [1, 2, 3]
        assert fake_sleep.delays == [0.5, 0.5]
        assert executor.tracker.active is None

    @pytest.mark.asyncio
    async def test_two_way_failure_propagates(self, fake_sleep):
        executor = make_executor(fake_sleep, Settings(communication_mode=TWO_WAY))

        async def broken() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await executor.execute("open", broken)
