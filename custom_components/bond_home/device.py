"""Per-device command facades.

Each Bond device is wrapped in one object that owns its repeat executor, its
active-command tracker and the optimistically updated state shown to Home
Assistant. Toggle-style commands are resolved against that state into
explicit ones (open/close, light on/off, a concrete direction) so that
repeating them on a one-way device cannot flip the device back.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .api import BondApi, DeviceInfo
from .const import (
    ACT_BREEZE_ON,
    ACT_CLOSE,
    ACT_HOLD,
    ACT_OPEN,
    ACT_PRESET,
    ACT_SET_BRIGHTNESS,
    ACT_SET_DIRECTION,
    ACT_SET_POSITION,
    ACT_SET_SPEED,
    ACT_TURN_LIGHT_OFF,
    ACT_TURN_LIGHT_ON,
    ACT_TURN_OFF,
    ACT_TURN_ON,
    BOND_DIRECTIONS,
    DEFAULT_FAN_REPEAT_DELAY_MS,
    DEFAULT_REPEAT_COUNT,
    DEFAULT_SHADE_REPEAT_DELAY_MS,
    DIRECTION_FORWARD,
    DIRECTION_REVERSE,
    LEVEL_BREAKPOINTS_3,
    LEVEL_BREAKPOINTS_5,
    OPT_COMMUNICATION_MODE,
    OPT_REPEAT_COUNT,
    OPT_REPEAT_DELAY_MS,
    OPT_SPEED_MODE,
    POSITION_CLOSED,
    POSITION_OPEN,
    POSITION_PRESET,
    SHADE_CLOSED,
    SHADE_OPEN,
    SHADE_PARTIALLY_OPEN,
    SPEED_AUTO,
    SPEED_MODE_3,
    SPEED_MODE_5,
    SPEED_OFF,
    SPEED_ON,
    SPEEDS_3,
    SPEEDS_5,
    TYPE_CEILING_FAN,
    TYPE_MOTORIZED_SHADES,
)
from .dispatch import (
    ActiveCommandTracker,
    CommunicationMode,
    RepeatExecutor,
    RepeatPolicy,
    Sleep,
)

_LOGGER = logging.getLogger(__name__)


@dataclass
class DeviceConfig:
    communication_mode: CommunicationMode = CommunicationMode.TWO_WAY
    repeat_policy: RepeatPolicy = field(default_factory=RepeatPolicy)
    speed_mode: str = SPEED_MODE_3

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None, default_delay_ms: int) -> DeviceConfig:
        """Build a config from stored options, filling defaults and clamping ranges."""
        options = options or {}
        try:
            mode = CommunicationMode(options.get(OPT_COMMUNICATION_MODE, CommunicationMode.TWO_WAY))
        except ValueError:
            _LOGGER.warning("Unknown communication mode %r, using two-way", options.get(OPT_COMMUNICATION_MODE))
            mode = CommunicationMode.TWO_WAY

        try:
            policy = RepeatPolicy.clamped(
                options.get(OPT_REPEAT_COUNT, DEFAULT_REPEAT_COUNT),
                options.get(OPT_REPEAT_DELAY_MS, default_delay_ms),
            )
        except (TypeError, ValueError):
            _LOGGER.warning("Invalid repeat settings %r, using defaults", options)
            policy = RepeatPolicy(DEFAULT_REPEAT_COUNT, default_delay_ms)

        speed_mode = str(options.get(OPT_SPEED_MODE, SPEED_MODE_3))
        if speed_mode not in (SPEED_MODE_3, SPEED_MODE_5):
            speed_mode = SPEED_MODE_3

        return cls(communication_mode=mode, repeat_policy=policy, speed_mode=speed_mode)


def _parse_int(value: Any) -> int | None:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return None


class BondDevice:
    default_repeat_delay_ms = DEFAULT_SHADE_REPEAT_DELAY_MS

    def __init__(
        self,
        api: BondApi,
        info: DeviceInfo,
        config: DeviceConfig | None = None,
        *,
        properties: Mapping[str, Any] | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.api = api
        self.info = info
        self.config = config or DeviceConfig(
            repeat_policy=RepeatPolicy(delay_ms=self.default_repeat_delay_ms)
        )
        self.properties: dict[str, Any] = dict(properties or {})
        self.state: dict[str, Any] = {}
        self.tracker = ActiveCommandTracker(info.name)
        self.executor = RepeatExecutor(
            self.tracker, lambda: self.config, sleep=sleep, name=info.name
        )
        self._listeners: list[Callable[[], None]] = []

    @property
    def device_id(self) -> str:
        return self.info.device_id

    @property
    def name(self) -> str:
        return self.info.name

    def supports(self, action: str) -> bool:
        return action in self.info.actions

    def add_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _update(self, **changes: Any) -> None:
        self.state.update(changes)
        for listener in list(self._listeners):
            listener()

    async def _hub_action(self, action: str, argument: Any = None) -> None:
        await self.api.action(self.device_id, action, argument)

    async def fetch_state(self) -> dict[str, Any]:
        return await self.api.device_state(self.device_id)

    def apply_hub_state(self, raw: Mapping[str, Any]) -> None:
        """Reconcile the optimistic state with what the hub reports."""
        self._update(**self._translate_state(raw))

    def _translate_state(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        return {}

    def reset(self) -> None:
        self.tracker.reset()


class BondFan(BondDevice):
    default_repeat_delay_ms = DEFAULT_FAN_REPEAT_DELAY_MS

    @property
    def speeds(self) -> tuple[str, ...]:
        return SPEEDS_5 if self.config.speed_mode == SPEED_MODE_5 else SPEEDS_3

    @property
    def max_speed(self) -> int:
        return _parse_int(self.properties.get("max_speed")) or len(self.speeds)

    @property
    def has_light(self) -> bool:
        return self.supports(ACT_TURN_LIGHT_ON)

    def speed_value(self, speed: str) -> int:
        """Bond SetSpeed argument for a speed name, scaled to the fan's max_speed."""
        index = self.speeds.index(speed) + 1
        if self.max_speed == len(self.speeds):
            return index
        return max(1, math.ceil(index * self.max_speed / len(self.speeds)))

    def speed_name(self, value: int) -> str:
        index = math.ceil(value * len(self.speeds) / self.max_speed)
        return self.speeds[max(1, min(len(self.speeds), index)) - 1]

    def level_to_speed(self, level: int) -> str:
        table = LEVEL_BREAKPOINTS_5 if self.config.speed_mode == SPEED_MODE_5 else LEVEL_BREAKPOINTS_3
        for upper, speed in table:
            if level <= upper:
                return speed
        return table[-1][1]

    async def on(self) -> None:
        speed = self.state.get("last_speed") or self.speeds[0]

        async def action() -> None:
            await self._hub_action(ACT_TURN_ON)
            self._update(switch="on", speed=speed)

        await self.executor.execute("on", action)

    async def off(self) -> None:
        async def action() -> None:
            await self._hub_action(ACT_TURN_OFF)
            self._update(switch="off", speed=SPEED_OFF, breeze="off")

        await self.executor.execute("off", action)

    async def set_speed(self, speed: str) -> None:
        speed = str(speed).lower()
        if speed == SPEED_OFF:
            await self.off()
            return
        if speed == SPEED_ON:
            await self.on()
            return
        if speed == SPEED_AUTO:
            await self.breeze()
            return
        if speed not in self.speeds:
            _LOGGER.warning("%s: unsupported speed %r", self.name, speed)
            return

        value = self.speed_value(speed)

        async def action() -> None:
            await self._hub_action(ACT_SET_SPEED, value)
            self._update(switch="on", speed=speed, last_speed=speed, breeze="off")

        await self.executor.execute("setSpeed", action)

    async def high(self) -> None:
        await self.set_speed(self.speeds[-1])

    async def medium(self) -> None:
        await self.set_speed(self.speeds[len(self.speeds) // 2])

    async def low(self) -> None:
        await self.set_speed(self.speeds[0])

    async def cycle_speed(self) -> None:
        current = self.state.get("speed")
        if current not in self.speeds:
            await self.set_speed(self.speeds[0])
        elif current == self.speeds[-1]:
            await self.off()
        else:
            await self.set_speed(self.speeds[self.speeds.index(current) + 1])

    async def set_level(self, level: Any) -> None:
        value = _parse_int(level)
        if value is None:
            _LOGGER.warning("%s: invalid level %r", self.name, level)
            return
        value = max(0, min(100, value))
        if value == 0:
            await self.off()
            return
        await self.set_speed(self.level_to_speed(value))

    async def breeze(self) -> None:
        async def action() -> None:
            await self._hub_action(ACT_BREEZE_ON)
            self._update(switch="on", speed=SPEED_AUTO, breeze="on")

        await self.executor.execute("breeze", action)

    async def set_direction(self, direction: str) -> None:
        direction = str(direction).lower()
        if direction not in BOND_DIRECTIONS:
            _LOGGER.warning("%s: invalid direction %r", self.name, direction)
            return

        async def action() -> None:
            await self._hub_action(ACT_SET_DIRECTION, BOND_DIRECTIONS[direction])
            self._update(direction=direction)

        await self.executor.execute("setDirection", action)

    async def toggle_direction(self) -> None:
        if self.state.get("direction") == DIRECTION_REVERSE:
            await self.set_direction(DIRECTION_FORWARD)
        else:
            await self.set_direction(DIRECTION_REVERSE)

    async def light_on(self) -> None:
        async def action() -> None:
            await self._hub_action(ACT_TURN_LIGHT_ON)
            self._update(light="on")

        await self.executor.execute("lightOn", action)

    async def light_off(self) -> None:
        async def action() -> None:
            await self._hub_action(ACT_TURN_LIGHT_OFF)
            self._update(light="off")

        await self.executor.execute("lightOff", action)

    async def light_toggle(self) -> None:
        if self.state.get("light") == "on":
            await self.light_off()
        else:
            await self.light_on()

    async def set_light_level(self, level: Any) -> None:
        value = _parse_int(level)
        if value is None:
            _LOGGER.warning("%s: invalid light level %r", self.name, level)
            return
        value = max(0, min(100, value))
        if value == 0:
            await self.light_off()
            return

        async def action() -> None:
            await self._hub_action(ACT_SET_BRIGHTNESS, value)
            self._update(light="on", light_level=value)

        await self.executor.execute("setLightLevel", action)

    def _translate_state(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        power = raw.get("power")
        breeze = raw.get("breeze") or [0]
        speed = _parse_int(raw.get("speed"))

        if breeze and breeze[0]:
            changes["breeze"] = "on"
        elif "breeze" in raw:
            changes["breeze"] = "off"

        if power is not None:
            changes["switch"] = "on" if power else "off"
            if not power:
                changes["speed"] = SPEED_OFF
            elif changes.get("breeze") == "on":
                changes["speed"] = SPEED_AUTO
            elif speed:
                changes["speed"] = changes["last_speed"] = self.speed_name(speed)

        direction = raw.get("direction")
        if direction in (1, -1):
            changes["direction"] = DIRECTION_FORWARD if direction == 1 else DIRECTION_REVERSE

        if raw.get("light") is not None:
            changes["light"] = "on" if raw["light"] else "off"
        brightness = _parse_int(raw.get("brightness"))
        if brightness is not None:
            changes["light_level"] = brightness
        return changes


class BondShade(BondDevice):
    default_repeat_delay_ms = DEFAULT_SHADE_REPEAT_DELAY_MS

    async def open(self) -> None:
        async def action() -> None:
            await self._hub_action(ACT_OPEN)
            self._update(window_shade=SHADE_OPEN, position=POSITION_OPEN, switch="on")

        await self.executor.execute("open", action)

    async def close(self) -> None:
        async def action() -> None:
            await self._hub_action(ACT_CLOSE)
            self._update(window_shade=SHADE_CLOSED, position=POSITION_CLOSED, switch="off")

        await self.executor.execute("close", action)

    async def toggle(self) -> None:
        if self.state.get("switch") == "on":
            await self.close()
        else:
            await self.open()

    async def stop(self) -> None:
        await self.executor.execute_once("stop", self._hold)

    async def stop_position_change(self) -> None:
        await self.executor.execute_once("stopPositionChange", self._hold)

    async def _hold(self) -> None:
        await self._hub_action(ACT_HOLD)

    async def preset(self) -> None:
        async def action() -> None:
            await self._hub_action(ACT_PRESET)
            self._update(
                window_shade=SHADE_PARTIALLY_OPEN, position=POSITION_PRESET, switch="on"
            )

        await self.executor.execute("preset", action)

    async def set_position(self, position: Any) -> None:
        value = _parse_int(position)
        if value is None:
            _LOGGER.warning("%s: invalid position %r", self.name, position)
            return
        value = max(POSITION_CLOSED, min(POSITION_OPEN, value))

        # Older firmware handles the end stops and the preset better than SetPosition
        if value == POSITION_CLOSED:
            await self.close()
            return
        if value == POSITION_OPEN:
            await self.open()
            return
        if value == POSITION_PRESET:
            await self.preset()
            return

        async def action() -> None:
            await self._hub_action(ACT_SET_POSITION, POSITION_OPEN - value)
            self._update(window_shade=SHADE_PARTIALLY_OPEN, position=value, switch="on")

        await self.executor.execute("setPosition", action)

    async def start_position_change(self, direction: str) -> None:
        direction = str(direction).lower()
        if direction == "open":
            await self.open()
        elif direction == "close":
            await self.close()
        else:
            _LOGGER.warning("%s: invalid direction %r", self.name, direction)

    def _translate_state(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        position = _parse_int(raw.get("position"))
        if position is not None:
            position = POSITION_OPEN - max(0, min(100, position))
        elif raw.get("open") is not None:
            position = POSITION_OPEN if raw["open"] else POSITION_CLOSED
        else:
            return {}

        if position == POSITION_OPEN:
            shade = SHADE_OPEN
        elif position == POSITION_CLOSED:
            shade = SHADE_CLOSED
        else:
            shade = SHADE_PARTIALLY_OPEN
        return {"window_shade": shade, "position": position, "switch": "on" if position else "off"}


class BondShadeGroup(BondShade):
    async def _hub_action(self, action: str, argument: Any = None) -> None:
        await self.api.group_action(self.device_id, action, argument)

    async def fetch_state(self) -> dict[str, Any]:
        return await self.api.group_state(self.device_id)


def create_device(
    api: BondApi,
    info: DeviceInfo,
    options: Mapping[str, Any] | None = None,
    properties: Mapping[str, Any] | None = None,
) -> BondDevice | None:
    if info.type == TYPE_CEILING_FAN:
        cls: type[BondDevice] = BondFan
    elif info.type == TYPE_MOTORIZED_SHADES:
        cls = BondShadeGroup if info.is_group else BondShade
    else:
        _LOGGER.debug("Skipping unsupported Bond device %s (type %s)", info.device_id, info.type)
        return None
    config = DeviceConfig.from_options(options, cls.default_repeat_delay_ms)
    return cls(api, info, config, properties=properties)
