# tests/test_ucloud_api.py

from __future__ import annotations

from typing import Any

import pytest
from ucloud.core import exc

from eip_rotator.rotation import ucloud_api
from eip_rotator.rotation.rotator import RotationError
from eip_rotator.rotation.ucloud_api import UCloudEipApi, UCloudRegionDirectory

from .conftest import make_task


class FakeUNet:
    """Serves DescribeEIP pages from a fixed list; other calls are recorded."""

    def __init__(self, eips: list[dict[str, Any]], *, total: int | None = None, page_cap: int | None = None) -> None:
        self.eips = eips
        self.total = len(eips) if total is None else total
        self.page_cap = page_cap
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.raises: Exception | None = None
        self.client: FakeClient | None = None

    def _record(self, action: str, req: dict[str, Any]) -> None:
        self.requests.append((action, dict(req)))
        if self.raises is not None:
            raise self.raises

    def describe_eip(self, req: dict[str, Any]) -> dict[str, Any]:
        self._record("DescribeEIP", req)
        limit = req["Limit"] if self.page_cap is None else min(req["Limit"], self.page_cap)
        page = self.eips[req["Offset"]:req["Offset"] + limit]
        return {"EIPSet": page, "TotalCount": self.total}

    def allocate_eip(self, req: dict[str, Any]) -> dict[str, Any]:
        self._record("AllocateEIP", req)
        return {"EIPSet": [{"EIPId": "eip-new"}]}

    def un_bind_eip(self, req: dict[str, Any]) -> dict[str, Any]:
        self._record("UnBindEIP", req)
        return {}

    def bind_eip(self, req: dict[str, Any]) -> dict[str, Any]:
        self._record("BindEIP", req)
        return {}

    def release_eip(self, req: dict[str, Any]) -> dict[str, Any]:
        self._record("ReleaseEIP", req)
        return {}


class FakeUAccount:
    def __init__(self, regions: list[str]) -> None:
        self.regions = regions

    def get_region(self, req: dict[str, Any]) -> dict[str, Any]:
        return {"Regions": [{"Region": r, "Zone": f"{r}-01"} for r in self.regions]}


class FakeClient:
    def __init__(self, unet: FakeUNet | None = None, uaccount: FakeUAccount | None = None) -> None:
        self.configs: list[dict[str, Any]] = []
        self._unet = unet
        self._uaccount = uaccount

    def __call__(self, config: dict[str, Any]) -> FakeClient:
        self.configs.append(config)
        return self

    def unet(self) -> FakeUNet | None:
        return self._unet

    def uaccount(self) -> FakeUAccount | None:
        return self._uaccount


def _eips(n: int) -> list[dict[str, Any]]:
    return [{"EIPId": f"eip-{i}"} for i in range(n)]


@pytest.fixture
def unet(monkeypatch) -> FakeUNet:
    fake = FakeUNet([])
    client = FakeClient(unet=fake)
    monkeypatch.setattr(ucloud_api, "Client", client)
    fake.client = client
    return fake


def _offsets(unet: FakeUNet) -> list[int]:
    return [req["Offset"] for action, req in unet.requests if action == "DescribeEIP"]


def test_client_config_carries_credentials_and_region(unet: FakeUNet) -> None:
    UCloudEipApi(make_task("pub", "priv"), "cn-bj2", timeout=0.2, max_retries=-1)

    (cfg,) = unet.client.configs
    assert cfg == {
        "public_key": "pub",
        "private_key": "priv",
        "region": "cn-bj2",
        "timeout": 1,
        "max_retries": 0,
    }


def test_describe_eips_pages_until_total_count(unet: FakeUNet) -> None:
    unet.eips = _eips(250)
    unet.total = 250
    api = UCloudEipApi(make_task(), "cn-bj2")

    out = api.describe_eips("org-1")

    assert [e["EIPId"] for e in out] == [f"eip-{i}" for i in range(250)]
    assert _offsets(unet) == [0, 100, 200]
    assert all(req["ProjectId"] == "org-1" and req["Limit"] == 100 for _, req in unet.requests)


def test_describe_eips_follows_short_pages(unet: FakeUNet) -> None:
    # server caps pages below the requested limit
    unet.eips = _eips(7)
    unet.total = 7
    unet.page_cap = 3
    api = UCloudEipApi(make_task(), "cn-bj2")

    out = api.describe_eips("org-1")

    assert len(out) == 7
    assert _offsets(unet) == [0, 3, 6]


def test_describe_eips_stops_on_empty_page(unet: FakeUNet) -> None:
    # TotalCount overstates what the server actually returns
    unet.eips = _eips(5)
    unet.total = 40
    api = UCloudEipApi(make_task(), "cn-bj2")

    out = api.describe_eips("org-1")

    assert len(out) == 5
    assert _offsets(unet) == [0, 5]


def test_describe_eips_single_request_when_nothing_bound(unet: FakeUNet) -> None:
    api = UCloudEipApi(make_task(), "cn-bj2")
    assert api.describe_eips("org-1") == []
    assert _offsets(unet) == [0]


@pytest.mark.parametrize(
    "error",
    [exc.UCloudException("AllocateEIP quota exceeded"), ConnectionResetError("connection reset by peer")],
)
def test_sdk_and_transport_errors_become_rotation_errors(unet: FakeUNet, error: Exception) -> None:
    unet.raises = error
    api = UCloudEipApi(make_task(), "cn-bj2")

    with pytest.raises(RotationError) as info:
        api.allocate_eip(
            project_id="org-1",
            operator_name="Bgp",
            bandwidth=2,
            pay_mode="Bandwidth",
            charge_type="Dynamic",
        )
    assert info.value.__cause__ is error


def test_allocate_eip_sends_quantity_only_for_prepaid(unet: FakeUNet) -> None:
    api = UCloudEipApi(make_task(), "cn-bj2")

    api.allocate_eip(project_id="o", operator_name="Bgp", bandwidth=2, pay_mode="Bandwidth", charge_type="Dynamic")
    api.allocate_eip(
        project_id="o", operator_name="Bgp", bandwidth=2, pay_mode="Bandwidth", charge_type="Month", quantity=1
    )

    first, second = (req for _, req in unet.requests)
    assert "Quantity" not in first
    assert second["Quantity"] == 1


def test_bind_calls_target_uhost(unet: FakeUNet) -> None:
    api = UCloudEipApi(make_task(), "cn-bj2")

    api.unbind_eip(project_id="o", eip_id="eip-old", resource_id="uhost-1")
    api.bind_eip(project_id="o", eip_id="eip-new", resource_id="uhost-1")
    api.release_eip(project_id="o", eip_id="eip-old")

    assert [a for a, _ in unet.requests] == ["UnBindEIP", "BindEIP", "ReleaseEIP"]
    assert unet.requests[0][1] == {
        "ProjectId": "o",
        "EIPId": "eip-old",
        "ResourceType": "uhost",
        "ResourceId": "uhost-1",
    }


def test_region_directory_lists_regions_without_region_config(monkeypatch) -> None:
    client = FakeClient(uaccount=FakeUAccount(["cn-bj2", "hk", "cn-bj2"]))
    monkeypatch.setattr(ucloud_api, "Client", client)

    regions = UCloudRegionDirectory(make_task()).list_regions()

    assert regions == ["cn-bj2", "hk", "cn-bj2"]
    assert "region" not in client.configs[0]
