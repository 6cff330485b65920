from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .api import BondApi, BondApiError, BondAuthError
from .const import (
    CONF_HOST,
    CONF_NAME,
    CONF_TOKEN,
    DEFAULT_NAME,
    DOMAIN,
    MAX_REPEAT_COUNT,
    MAX_REPEAT_DELAY_MS,
    MIN_REPEAT_COUNT,
    MIN_REPEAT_DELAY_MS,
    MODE_ONE_WAY,
    MODE_TWO_WAY,
    OPT_COMMUNICATION_MODE,
    OPT_DEVICE_ID,
    OPT_DEVICES,
    OPT_REPEAT_COUNT,
    OPT_REPEAT_DELAY_MS,
    OPT_SPEED_MODE,
    SPEED_MODE_3,
    SPEED_MODE_5,
)
from .device import BondDevice, BondFan


async def _validate(hass: HomeAssistant, host: str, token: str) -> dict:
    api = BondApi(async_get_clientsession(hass), host, token)
    info = await api.version()
    if not info.bond_id:
        raise BondApiError("No bond id returned")
    return {
        "title": info.bond_id or DEFAULT_NAME,
        "unique_id": info.bond_id,
    }


class BondHomeConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = 1

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry) -> BondHomeOptionsFlow:
        return BondHomeOptionsFlow(config_entry)

    async def async_step_user(self, user_input=None):
        errors = {}

        if user_input is not None:
            host = user_input[CONF_HOST]
            token = user_input[CONF_TOKEN]
            name = user_input.get(CONF_NAME) or None

            try:
                result = await _validate(self.hass, host, token)
            except BondAuthError:
                errors["base"] = "invalid_auth"
            except BondApiError:
                errors["base"] = "cannot_connect"
            except Exception:
                errors["base"] = "unknown"
            else:
                await self.async_set_unique_id(result["unique_id"])
                self._abort_if_unique_id_configured()

                data = {CONF_HOST: host, CONF_TOKEN: token}
                if name:
                    data[CONF_NAME] = name

                return self.async_create_entry(
                    title=name or result["title"],
                    data=data,
                )

        schema = vol.Schema(
            {
                vol.Required(CONF_HOST): str,
                vol.Required(CONF_TOKEN): str,
                vol.Optional(CONF_NAME, default=""): str,
            }
        )

        return self.async_show_form(step_id="user", data_schema=schema, errors=errors)


def device_options_schema(device: BondDevice, current: dict[str, Any]) -> vol.Schema:
    """Schema for one device's dispatch settings, pre-filled with its current values."""
    config = device.config
    fields: dict[Any, Any] = {
        vol.Required(
            OPT_COMMUNICATION_MODE,
            default=current.get(OPT_COMMUNICATION_MODE, config.communication_mode.value),
        ): vol.In([MODE_TWO_WAY, MODE_ONE_WAY]),
        vol.Required(
            OPT_REPEAT_COUNT,
            default=current.get(OPT_REPEAT_COUNT, config.repeat_policy.count),
        ): vol.All(vol.Coerce(int), vol.Range(min=MIN_REPEAT_COUNT, max=MAX_REPEAT_COUNT)),
        vol.Required(
            OPT_REPEAT_DELAY_MS,
            default=current.get(OPT_REPEAT_DELAY_MS, config.repeat_policy.delay_ms),
        ): vol.All(vol.Coerce(int), vol.Range(min=MIN_REPEAT_DELAY_MS, max=MAX_REPEAT_DELAY_MS)),
    }
    if isinstance(device, BondFan):
        fields[
            vol.Required(OPT_SPEED_MODE, default=current.get(OPT_SPEED_MODE, config.speed_mode))
        ] = vol.In([SPEED_MODE_3, SPEED_MODE_5])
    return vol.Schema(fields)


class BondHomeOptionsFlow(config_entries.OptionsFlow):
    """Per-device communication settings: pick a device, then edit it."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry
        self._device_id: str | None = None

    def _devices(self) -> dict[str, BondDevice]:
        return self.hass.data.get(DOMAIN, {}).get(self._entry.entry_id, {}).get("devices", {})

    async def async_step_init(self, user_input=None):
        devices = self._devices()
        if not devices:
            return self.async_abort(reason="no_devices")

        if user_input is not None:
            self._device_id = user_input[OPT_DEVICE_ID]
            return await self.async_step_device()

        schema = vol.Schema(
            {
                vol.Required(OPT_DEVICE_ID): vol.In(
                    {device_id: device.name for device_id, device in devices.items()}
                )
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema)

    async def async_step_device(self, user_input=None):
        device = self._devices()[self._device_id]
        stored = dict(self._entry.options.get(OPT_DEVICES, {}))

        if user_input is not None:
            stored[self._device_id] = dict(user_input)
            return self.async_create_entry(title="", data={**self._entry.options, OPT_DEVICES: stored})

        return self.async_show_form(
            step_id="device",
            data_schema=device_options_schema(device, stored.get(self._device_id, {})),
            description_placeholders={"device": device.name},
        )
