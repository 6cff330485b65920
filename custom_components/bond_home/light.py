from __future__ import annotations

from typing import Any

from homeassistant.components.light import ATTR_BRIGHTNESS, ColorMode, LightEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import ACT_SET_BRIGHTNESS, DOMAIN
from .coordinator import BondCoordinator
from .device import BondFan
from .entity import BondEntity


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    data = hass.data[DOMAIN][entry.entry_id]
    coordinator: BondCoordinator = data["coordinator"]

    async_add_entities(
        BondFanLightEntity(coordinator, entry.entry_id, device)
        for device in data["devices"].values()
        if isinstance(device, BondFan) and device.has_light
    )


class BondFanLightEntity(BondEntity, LightEntity):
    _attr_name = "Light"
    _device: BondFan

    def __init__(self, coordinator: BondCoordinator, entry_id: str, device: BondFan) -> None:
        super().__init__(coordinator, entry_id, device, "light")
        mode = ColorMode.BRIGHTNESS if device.supports(ACT_SET_BRIGHTNESS) else ColorMode.ONOFF
        self._attr_color_mode = mode
        self._attr_supported_color_modes = {mode}

    @property
    def is_on(self) -> bool | None:
        light = self._device.state.get("light")
        return None if light is None else light == "on"

    # Bond brightness is 0-100, Home Assistant uses 0-255
    @property
    def brightness(self) -> int | None:
        level = self._device.state.get("light_level")
        if level is None or self._attr_color_mode != ColorMode.BRIGHTNESS:
            return None
        return round(level * 255 / 100)

    async def async_turn_on(self, **kwargs: Any) -> None:
        brightness = kwargs.get(ATTR_BRIGHTNESS)
        if brightness is not None and self._attr_color_mode == ColorMode.BRIGHTNESS:
            await self._device.set_light_level(max(1, round(brightness * 100 / 255)))
        else:
            await self._device.light_on()

    async def async_turn_off(self, **kwargs: Any) -> None:
        await self._device.light_off()

    async def async_toggle(self, **kwargs: Any) -> None:
        await self._device.light_toggle()
