from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import BondApi, BondApiError
from .const import DOMAIN, UPDATE_INTERVAL_SECONDS
from .device import BondDevice

_LOGGER = logging.getLogger(__name__)


class BondCoordinator(DataUpdateCoordinator[dict[str, dict[str, Any]]]):
    """Polls every device's state and reconciles the optimistic device state."""

    def __init__(
        self,
        hass: HomeAssistant,
        entry: ConfigEntry,
        api: BondApi,
        devices: dict[str, BondDevice],
    ) -> None:
        super().__init__(
            hass,
            config_entry=entry,
            logger=_LOGGER,
            name=DOMAIN,
            update_interval=timedelta(seconds=UPDATE_INTERVAL_SECONDS),
        )
        self.api = api
        self.devices = devices

    async def _async_update_data(self) -> dict[str, dict[str, Any]]:
        data: dict[str, dict[str, Any]] = {}
        try:
            for device_id, device in self.devices.items():
                data[device_id] = await device.fetch_state()
        except BondApiError as e:
            raise UpdateFailed(str(e)) from e

        for device_id, raw in data.items():
            self.devices[device_id].apply_hub_state(raw)
        return data
