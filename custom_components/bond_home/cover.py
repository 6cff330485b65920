from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant.components.cover import (
    ATTR_POSITION,
    CoverDeviceClass,
    CoverEntity,
    CoverEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers import entity_platform
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, POSITION_CLOSED
from .coordinator import BondCoordinator
from .device import BondShade
from .entity import BondEntity


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    data = hass.data[DOMAIN][entry.entry_id]
    coordinator: BondCoordinator = data["coordinator"]

    async_add_entities(
        BondShadeCover(coordinator, entry.entry_id, device)
        for device in data["devices"].values()
        if isinstance(device, BondShade)
    )

    platform = entity_platform.async_get_current_platform()
    platform.async_register_entity_service("preset", {}, "async_preset")
    platform.async_register_entity_service(
        "start_position_change",
        {vol.Required("direction"): vol.In(["open", "close"])},
        "async_start_position_change",
    )
    platform.async_register_entity_service(
        "stop_position_change", {}, "async_stop_position_change"
    )


class BondShadeCover(BondEntity, CoverEntity):
    """A Bond shade or shade group. Position scale: 100=open, 0=closed."""

    _attr_name = None
    _attr_device_class = CoverDeviceClass.SHADE
    _attr_supported_features = (
        CoverEntityFeature.OPEN
        | CoverEntityFeature.CLOSE
        | CoverEntityFeature.STOP
        | CoverEntityFeature.SET_POSITION
    )
    _device: BondShade

    def __init__(self, coordinator: BondCoordinator, entry_id: str, device: BondShade) -> None:
        super().__init__(coordinator, entry_id, device, "group" if device.info.is_group else "shade")

    @property
    def current_cover_position(self) -> int | None:
        return self._device.state.get("position")

    @property
    def is_closed(self) -> bool | None:
        position = self.current_cover_position
        if position is None:
            return None
        return position == POSITION_CLOSED

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return {
            **super().extra_state_attributes,
            "window_shade": self._device.state.get("window_shade"),
        }

    async def async_open_cover(self, **kwargs: Any) -> None:
        await self._device.open()

    async def async_close_cover(self, **kwargs: Any) -> None:
        await self._device.close()

    async def async_stop_cover(self, **kwargs: Any) -> None:
        await self._device.stop()

    async def async_toggle(self, **kwargs: Any) -> None:
        await self._device.toggle()

    async def async_set_cover_position(self, **kwargs: Any) -> None:
        await self._device.set_position(kwargs.get(ATTR_POSITION))

    async def async_preset(self) -> None:
        await self._device.preset()

    async def async_start_position_change(self, direction: str) -> None:
        await self._device.start_position_change(direction)

    async def async_stop_position_change(self) -> None:
        await self._device.stop_position_change()
