from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant.components.fan import FanEntity, FanEntityFeature
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers import entity_platform
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.util.percentage import ordered_list_item_to_percentage

from .const import DOMAIN, SPEED_AUTO, SPEEDS_5
from .coordinator import BondCoordinator
from .device import BondFan
from .entity import BondEntity

PRESET_BREEZE = "breeze"


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    data = hass.data[DOMAIN][entry.entry_id]
    coordinator: BondCoordinator = data["coordinator"]

    async_add_entities(
        BondFanEntity(coordinator, entry.entry_id, device)
        for device in data["devices"].values()
        if isinstance(device, BondFan)
    )

    platform = entity_platform.async_get_current_platform()
    platform.async_register_entity_service("cycle_speed", {}, "async_cycle_speed")
    platform.async_register_entity_service("toggle_direction", {}, "async_toggle_direction")
    platform.async_register_entity_service(
        "set_speed",
        {vol.Required("speed"): vol.In(["off", "on", SPEED_AUTO, *SPEEDS_5])},
        "async_set_speed",
    )


class BondFanEntity(BondEntity, FanEntity):
    _attr_name = None
    _attr_preset_modes = [PRESET_BREEZE]
    _enable_turn_on_off_backwards_compatibility = False
    _device: BondFan

    def __init__(self, coordinator: BondCoordinator, entry_id: str, device: BondFan) -> None:
        super().__init__(coordinator, entry_id, device, "fan")
        self._attr_supported_features = (
            FanEntityFeature.SET_SPEED
            | FanEntityFeature.PRESET_MODE
            | FanEntityFeature.DIRECTION
            | FanEntityFeature.TURN_ON
            | FanEntityFeature.TURN_OFF
        )

    @property
    def speed_count(self) -> int:
        return len(self._device.speeds)

    @property
    def is_on(self) -> bool | None:
        switch = self._device.state.get("switch")
        return None if switch is None else switch == "on"

    @property
    def percentage(self) -> int | None:
        speed = self._device.state.get("speed")
        if speed is None:
            return None
        if speed not in self._device.speeds:
            return 0
        return ordered_list_item_to_percentage(list(self._device.speeds), speed)

    @property
    def preset_mode(self) -> str | None:
        return PRESET_BREEZE if self._device.state.get("breeze") == "on" else None

    @property
    def current_direction(self) -> str | None:
        return self._device.state.get("direction")

    async def async_turn_on(
        self, percentage: int | None = None, preset_mode: str | None = None, **kwargs: Any
    ) -> None:
        if preset_mode is not None:
            await self.async_set_preset_mode(preset_mode)
        elif percentage is not None:
            await self._device.set_level(percentage)
        else:
            await self._device.on()

    async def async_turn_off(self, **kwargs: Any) -> None:
        await self._device.off()

    async def async_set_percentage(self, percentage: int) -> None:
        await self._device.set_level(percentage)

    async def async_set_preset_mode(self, preset_mode: str) -> None:
        if preset_mode == PRESET_BREEZE:
            await self._device.breeze()

    async def async_set_direction(self, direction: str) -> None:
        await self._device.set_direction(direction)

    async def async_cycle_speed(self) -> None:
        await self._device.cycle_speed()

    async def async_toggle_direction(self) -> None:
        await self._device.toggle_direction()

    async def async_set_speed(self, speed: str) -> None:
        await self._device.set_speed(speed)
