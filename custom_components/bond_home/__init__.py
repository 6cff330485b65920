"""The Bond Home integration."""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .api import BondApi, BondApiError
from .const import CONF_HOST, CONF_TOKEN, DOMAIN, OPT_DEVICES, PLATFORMS
from .coordinator import BondCoordinator
from .device import BondDevice, create_device

_LOGGER = logging.getLogger(__name__)


async def _load_devices(api: BondApi, device_options: dict) -> dict[str, BondDevice]:
    devices: dict[str, BondDevice] = {}

    for device_id in await api.devices():
        info = await api.device(device_id)
        properties = await api.device_properties(device_id)
        device = create_device(api, info, device_options.get(device_id), properties)
        if device is not None:
            devices[device_id] = device

    for group_id in await api.groups():
        info = await api.group(group_id)
        device = create_device(api, info, device_options.get(group_id))
        if device is not None:
            devices[group_id] = device

    return devices


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    api = BondApi(async_get_clientsession(hass), entry.data[CONF_HOST], entry.data[CONF_TOKEN])

    try:
        hub = await api.version()
        devices = await _load_devices(api, entry.options.get(OPT_DEVICES, {}))
    except BondApiError as e:
        raise ConfigEntryNotReady(str(e)) from e

    _LOGGER.debug("Bond hub %s: %s devices", hub.bond_id, len(devices))

    coordinator = BondCoordinator(hass, entry, api, devices)
    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        "api": api,
        "hub": hub,
        "devices": devices,
        "coordinator": coordinator,
    }

    entry.async_on_unload(entry.add_update_listener(_async_reload_entry))
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        data = hass.data[DOMAIN].pop(entry.entry_id)
        for device in data["devices"].values():
            device.reset()
    return unloaded


async def _async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    await hass.config_entries.async_reload(entry.entry_id)
