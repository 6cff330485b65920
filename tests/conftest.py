import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from custom_components.bond_home.api import BondApiError, DeviceInfo
from custom_components.bond_home.const import (
    ACT_SET_BRIGHTNESS,
    ACT_TURN_LIGHT_ON,
    SPEED_MODE_3,
    TYPE_CEILING_FAN,
    TYPE_MOTORIZED_SHADES,
)
from custom_components.bond_home.device import (
    BondFan,
    BondShade,
    BondShadeGroup,
    DeviceConfig,
)
from custom_components.bond_home.dispatch import CommunicationMode, RepeatPolicy


class FakeSleep:
    """Records requested delays instead of waiting.

    A hook registered under n runs while the n-th sleep is in progress, which
    is where a superseding command would arrive on a real hub.
    """

    def __init__(self) -> None:
        self.delays: list[float] = []
        self.hooks: dict[int, Callable[[], Awaitable[None]]] = {}

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        hook = self.hooks.pop(len(self.delays), None)
        if hook is not None:
            await hook()
        await asyncio.sleep(0)


class FakeApi:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.group_calls: list[tuple[str, Any]] = []
        self.fail_actions: set[str] = set()
        self.states: dict[str, dict[str, Any]] = {}

    async def action(self, device_id: str, action: str, argument: Any = None) -> None:
        self.calls.append((action, argument))
        if action in self.fail_actions:
            raise BondApiError(f"PUT {action} failed: HTTP 500")

    async def group_action(self, group_id: str, action: str, argument: Any = None) -> None:
        self.group_calls.append((action, argument))

    async def device_state(self, device_id: str) -> dict[str, Any]:
        return self.states.get(device_id, {})

    async def group_state(self, group_id: str) -> dict[str, Any]:
        return self.states.get(group_id, {})

    def actions(self) -> list[str]:
        return [action for action, _ in self.calls]


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def make_fan(fake_api, fake_sleep):
    def factory(
        mode: CommunicationMode = CommunicationMode.TWO_WAY,
        speed_mode: str = SPEED_MODE_3,
        count: int = 3,
        delay_ms: int = 500,
        properties: dict | None = None,
    ) -> BondFan:
        info = DeviceInfo(
            device_id="fan1",
            name="Bedroom Fan",
            type=TYPE_CEILING_FAN,
            location="Bedroom",
            actions=[ACT_TURN_LIGHT_ON, ACT_SET_BRIGHTNESS],
        )
        config = DeviceConfig(mode, RepeatPolicy(count, delay_ms), speed_mode)
        return BondFan(fake_api, info, config, properties=properties, sleep=fake_sleep)

    return factory


@pytest.fixture
def make_shade(fake_api, fake_sleep):
    def factory(
        mode: CommunicationMode = CommunicationMode.TWO_WAY,
        count: int = 3,
        delay_ms: int = 2000,
        group: bool = False,
    ) -> BondShade:
        info = DeviceInfo(
            device_id="shade1",
            name="Living Room Shade",
            type=TYPE_MOTORIZED_SHADES,
            location="Living Room",
            is_group=group,
        )
        config = DeviceConfig(mode, RepeatPolicy(count, delay_ms))
        cls = BondShadeGroup if group else BondShade
        return cls(fake_api, info, config, sleep=fake_sleep)

    return factory
