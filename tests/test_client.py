from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from pyably._constants import ACTIVATION_STATE_KEY
from pyably._transport import RestResponse
from pyably.client import AblyRest
from pyably.config import AblyConfig
from pyably.exceptions import AblyApiError, AblyError, AblyPushNotSupportedError
from pyably.models.device import LocalDevice
from pyably.push.states import StateName

_RECIPIENT = {"transportType": "fcm", "registrationToken": "fcm-token-1"}


@dataclass
class FakePushBackend:
    registrations: dict[str, dict[str, Any]] = field(default_factory=dict)
    tokens: dict[str, str] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    published: list[dict[str, Any]] = field(default_factory=list)
    transports: list[Any] = field(default_factory=list)
    reject_registration: bool = False

    def _unauthorized(self, path: str) -> AblyApiError:
        return AblyApiError("token mismatch", code=40100, status_code=401, endpoint=path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        self.calls.append((method, path))
        headers = headers or {}

        if method == "POST" and path == "/push/publish":
            self.published.append(body)
            return RestResponse(status=201)

        if method == "POST" and path == "/push/deviceRegistrations":
            if self.reject_registration:
                raise AblyApiError("registration rejected", code=40000, status_code=400, endpoint=path)
            device_id = body["id"]
            token = f"token-{len(self.tokens) + 1}"
            self.registrations[device_id] = body
            self.tokens[device_id] = token
            return RestResponse(status=201, body={**body, "deviceIdentityToken": {"token": token}})

        device_id = path.rsplit("/", 1)[-1]
        if headers.get("X-Ably-DeviceToken") != self.tokens.get(device_id):
            raise self._unauthorized(path)

        if method == "PATCH":
            self.registrations[device_id]["push"] = body["push"]
            return RestResponse(status=200, body=self.registrations[device_id])

        if method == "DELETE":
            self.registrations.pop(device_id, None)
            self.tokens.pop(device_id, None)
            return RestResponse(status=204)

        raise AssertionError(f"unexpected request {method} {path}")


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakePushBackend:
    fake = FakePushBackend()

    async def fake_request(transport: Any, method: str, path: str, **kwargs: Any) -> RestResponse:
        fake.transports.append(transport)
        return await fake.request(method, path, **kwargs)

    monkeypatch.setattr("pyably._transport.RestTransport.request", fake_request)
    return fake


@pytest.fixture
def config(tmp_path: Path) -> AblyConfig:
    return AblyConfig(
        key="app.keyid:secret",
        rest_host="https://rest.test",
        client_id="alice",
        push_storage_path=str(tmp_path / "push.json"),
    )


async def _fetch_recipient() -> dict[str, Any]:
    return dict(_RECIPIENT)


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_activate_then_deactivate(config: AblyConfig, backend: FakePushBackend) -> None:
    async with AblyRest(config, fetch_recipient=_fetch_recipient) as client:
        await client.push.activate_async()

        device = client.device()
        assert device.update_token == "token-1"
        assert device.recipient == _RECIPIENT
        assert backend.registrations[device.id]["clientId"] == "alice"
        assert backend.registrations[device.id]["push"] == {"recipient": _RECIPIENT}
        assert client.push.state_machine.current.name is StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS

        await client.push.deactivate_async()

        assert device.update_token is None
        assert backend.registrations == {}
        assert client.push.state_machine.current.name is StateName.NOT_ACTIVATED

    stored = json.loads(Path(config.push_storage_path).read_text(encoding="utf-8"))
    assert stored[ACTIVATION_STATE_KEY] == "NotActivated"


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_activation_resumes_after_restart(config: AblyConfig, backend: FakePushBackend) -> None:
    async with AblyRest(config, fetch_recipient=_fetch_recipient) as client:
        await client.push.activate_async()
        device_id = client.device().id

    backend.calls.clear()
    async with AblyRest(config, fetch_recipient=_fetch_recipient) as client:
        assert client.device().id == device_id
        assert client.push.state_machine.current.name is StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS

        await client.push.activate_async()
        assert backend.calls == []

        await client.push.deactivate_async()
        assert backend.calls == [("DELETE", f"/push/deviceRegistrations/{device_id}")]


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_reentered_client_uses_current_transport(config: AblyConfig, backend: FakePushBackend) -> None:
    client = AblyRest(config, fetch_recipient=_fetch_recipient)

    async with client:
        await client.push.activate_async()
        first_machine = client.push.state_machine

    async with client:
        assert client.push.state_machine is not first_machine
        assert client.push.state_machine.current.name is StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS

        await client.push.deactivate_async()

        assert backend.transports[-1] is client._require_transport()
        assert client.push.state_machine.current.name is StateName.NOT_ACTIVATED
    assert backend.registrations == {}


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_interrupted_activation_restarts_from_persisted_state(
    config: AblyConfig,
    backend: FakePushBackend,
) -> None:
    release = asyncio.Event()
    fetches: list[int] = []

    async def slow_fetch() -> dict[str, Any]:
        fetches.append(1)
        await release.wait()
        return dict(_RECIPIENT)

    client = AblyRest(config, fetch_recipient=slow_fetch)

    async with client:
        client.push.activate()
        await asyncio.sleep(0)
        assert client.push.state_machine.current.name is StateName.WAITING_FOR_PUSH_DEVICE_DETAILS

    release.set()
    async with client:
        assert client.push.state_machine.current.name is StateName.NOT_ACTIVATED

        await asyncio.wait_for(client.push.activate_async(), timeout=1)

        assert fetches == [1, 1]
        assert client.device().update_token == "token-1"
        assert client.push.state_machine.current.name is StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_registration_error_is_raised(config: AblyConfig, backend: FakePushBackend) -> None:
    backend.reject_registration = True

    async with AblyRest(config, fetch_recipient=_fetch_recipient) as client:
        with pytest.raises(AblyApiError, match="registration rejected"):
            await client.push.activate_async()
        assert client.push.state_machine.current.name is StateName.NOT_ACTIVATED
        assert client.device().update_token is None


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_platform_failure_is_raised(config: AblyConfig, backend: FakePushBackend) -> None:
    async def no_permission() -> dict[str, Any]:
        raise PermissionError("notifications blocked")

    async with AblyRest(config, fetch_recipient=no_permission) as client:
        with pytest.raises(PermissionError):
            await client.push.activate_async()
    assert backend.calls == []


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_custom_registerer(config: AblyConfig, backend: FakePushBackend) -> None:
    class OwnServer:
        def __init__(self) -> None:
            self.registered: list[str] = []

        async def register(self, device: LocalDevice) -> str:
            self.registered.append(device.id)
            return "custom-token"

        async def update_registration(self, device: LocalDevice) -> None:
            return None

        async def deregister(self, device: LocalDevice) -> None:
            return None

    server = OwnServer()
    async with AblyRest(config, fetch_recipient=_fetch_recipient, custom_registerer=server) as client:
        await client.push.activate_async(use_custom_registerer=True)
        assert server.registered == [client.device().id]
        assert client.device().update_token == "custom-token"
    assert backend.calls == []


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_publish(config: AblyConfig, backend: FakePushBackend) -> None:
    async with AblyRest(config) as client:
        await client.push.publish({"deviceId": "D1"}, {"notification": {"title": "Hello"}})
    assert backend.published == [{"notification": {"title": "Hello"}, "recipient": {"deviceId": "D1"}}]


@pytest.mark.asyncio
async def test_activation_without_platform_is_unsupported(config: AblyConfig, backend: FakePushBackend) -> None:
    async with AblyRest(config) as client:
        with pytest.raises(AblyPushNotSupportedError):
            client.push.activate()


@pytest.mark.asyncio
async def test_client_must_be_entered(config: AblyConfig) -> None:
    client = AblyRest(config)
    with pytest.raises(AblyError, match="not initialized"):
        await client.push.publish({"clientId": "alice"}, {"data": {"k": "v"}})
    with pytest.raises(AblyError, match="not initialized"):
        await client.push.admin.device_registrations.get("D1")
