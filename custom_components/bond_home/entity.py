from __future__ import annotations

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import BondCoordinator
from .device import BondDevice


class BondEntity(CoordinatorEntity[BondCoordinator]):
    _attr_has_entity_name = True

    def __init__(
        self, coordinator: BondCoordinator, entry_id: str, device: BondDevice, suffix: str
    ) -> None:
        super().__init__(coordinator)
        self._device = device
        self._attr_unique_id = f"{entry_id}_{device.device_id}_{suffix}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, f"{entry_id}_{device.device_id}")},
            name=device.name,
            manufacturer="Bond",
            suggested_area=device.info.location,
        )

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        # optimistic updates are pushed by the device object between polls
        self.async_on_remove(self._device.add_listener(self.async_write_ha_state))

    @property
    def extra_state_attributes(self) -> dict:
        active = self._device.tracker.active
        return {
            "communication_mode": self._device.config.communication_mode.value,
            "repeat_count": self._device.config.repeat_policy.count,
            "repeat_delay_ms": self._device.config.repeat_policy.delay_ms,
            "active_command": active.name if active else None,
        }
