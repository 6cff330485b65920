from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import aiohttp


class BondApiError(Exception):
    """Raised on any API/transport error."""


class BondAuthError(BondApiError):
    """Raised when the hub rejects the local token."""


@dataclass
class HubInfo:
    bond_id: str
    target: str | None
    fw_ver: str | None
    model: str | None
    make: str | None


@dataclass
class DeviceInfo:
    device_id: str
    name: str
    type: str
    location: str | None
    actions: list[str] = field(default_factory=list)
    is_group: bool = False


class BondApi:
    def __init__(
        self, session: aiohttp.ClientSession, host: str, token: str, timeout: float = 8.0
    ) -> None:
        self._session = session
        self._host = host.rstrip("/")
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._lock = asyncio.Lock()

    @property
    def base_url(self) -> str:
        if self._host.startswith(("http://", "https://")):
            return self._host
        return f"http://{self._host}"

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"BOND-Token": self._token}
        try:
            async with self._lock:
                async with self._session.request(
                    method, url, json=payload, headers=headers, timeout=self._timeout
                ) as resp:
                    if resp.status == 401:
                        raise BondAuthError(f"{method} {path} failed: unauthorized")
                    if resp.status >= 300:
                        raise BondApiError(f"{method} {path} failed: HTTP {resp.status}")
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BondApiError(f"{method} {path} failed: {e}") from e

    async def _get_json(self, path: str) -> Any:
        return await self._request("GET", path)

    async def version(self) -> HubInfo:
        data = await self._get_json("/v2/sys/version")
        return HubInfo(
            bond_id=str(data.get("bondid", "")),
            target=data.get("target"),
            fw_ver=data.get("fw_ver"),
            model=data.get("model"),
            make=data.get("make"),
        )

    async def devices(self) -> list[str]:
        data = await self._get_json("/v2/devices")
        return [key for key in (data or {}) if not key.startswith("_")]

    async def device(self, device_id: str) -> DeviceInfo:
        data = await self._get_json(f"/v2/devices/{device_id}")
        return DeviceInfo(
            device_id=device_id,
            name=str(data.get("name") or device_id),
            type=str(data.get("type", "")),
            location=data.get("location"),
            actions=list(data.get("actions") or []),
        )

    async def device_properties(self, device_id: str) -> dict[str, Any]:
        return await self._get_json(f"/v2/devices/{device_id}/properties") or {}

    async def device_state(self, device_id: str) -> dict[str, Any]:
        return await self._get_json(f"/v2/devices/{device_id}/state") or {}

    async def action(self, device_id: str, action: str, argument: Any = None) -> None:
        payload = {} if argument is None else {"argument": argument}
        await self._request("PUT", f"/v2/devices/{device_id}/actions/{action}", payload)

    async def groups(self) -> list[str]:
        data = await self._get_json("/v2/groups")
        return [key for key in (data or {}) if not key.startswith("_")]

    async def group(self, group_id: str) -> DeviceInfo:
        data = await self._get_json(f"/v2/groups/{group_id}")
        return DeviceInfo(
            device_id=group_id,
            name=str(data.get("name") or group_id),
            type=str((data.get("types") or [data.get("type", "")])[0]),
            location=data.get("location"),
            actions=list(data.get("actions") or []),
            is_group=True,
        )

    async def group_state(self, group_id: str) -> dict[str, Any]:
        return await self._get_json(f"/v2/groups/{group_id}/state") or {}

    async def group_action(self, group_id: str, action: str, argument: Any = None) -> None:
        payload = {} if argument is None else {"argument": argument}
        await self._request("PUT", f"/v2/groups/{group_id}/actions/{action}", payload)
