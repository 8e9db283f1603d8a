# tests/test_rotator.py

from __future__ import annotations

import logging

from eip_rotator.rotation.rotator import EipRotator, HostBinding, safe_name

from .conftest import make_task
from .fakes import FakeEipApi, FakeRegionDirectory, bound_eip


def _rotator(apis: dict[str, FakeEipApi], regions: FakeRegionDirectory | None = None) -> EipRotator:
    directory = regions or FakeRegionDirectory(list(apis))
    return EipRotator(lambda task, region: apis[region], lambda task: directory)


def test_rotates_bound_eip_in_order() -> None:
    api = FakeEipApi("cn-bj2", {"org-1": [bound_eip("eip-old", "uhost-1")]})
    outcome = _rotator({"cn-bj2": api})(make_task(region="cn-bj2"))

    assert outcome.ok
    names = [name for name, _ in api.calls]
    assert names == ["describe", "allocate", "unbind", "bind", "release"]

    alloc = api.calls[1][1]
    assert alloc["operator_name"] == "Bgp"
    assert alloc["bandwidth"] == 5
    assert alloc["pay_mode"] == "Bandwidth"
    assert alloc["charge_type"] == "Dynamic"
    assert alloc["quantity"] is None

    assert api.calls[2][1] == {"project_id": "org-1", "eip_id": "eip-old", "resource_id": "uhost-1"}
    assert api.calls[3][1]["eip_id"] == "eip-new-cn-bj2-1"
    assert api.calls[4][1] == {"project_id": "org-1", "eip_id": "eip-old"}


def test_prepaid_charge_type_sets_quantity() -> None:
    api = FakeEipApi("cn-bj2", {"org-1": [bound_eip("e1", "h1", charge_type="Month")]})
    assert _rotator({"cn-bj2": api})(make_task()).ok
    assert api.calls[1][1]["quantity"] == 1


def test_only_uhost_bindings_in_use_are_rotated() -> None:
    api = FakeEipApi(
        "cn-bj2",
        {
            "org-1": [
                bound_eip("free", "h1", status="free"),
                bound_eip("ulb", "lb1", resource_type="ulb"),
                bound_eip("nohost", ""),
                bound_eip("ok", "h2"),
            ]
        },
    )
    assert _rotator({"cn-bj2": api})(make_task()).ok
    allocs = [kw for name, kw in api.calls if name == "unbind"]
    assert [kw["eip_id"] for kw in allocs] == ["ok"]


def test_no_bindings_is_a_failure() -> None:
    api = FakeEipApi("cn-bj2", {"org-1": []})
    outcome = _rotator({"cn-bj2": api})(make_task())
    assert not outcome.ok
    assert "no bound EIP found" in (outcome.reason or "")


def test_release_failure_is_only_a_warning(caplog) -> None:
    api = FakeEipApi("cn-bj2", {"org-1": [bound_eip("e1", "h1")]}, fail={"release": "in use"})
    with caplog.at_level(logging.WARNING):
        outcome = _rotator({"cn-bj2": api})(make_task())
    assert outcome.ok
    assert any("ReleaseEIP failed" in r.getMessage() for r in caplog.records)


def test_bind_failure_aborts_with_context() -> None:
    api = FakeEipApi("cn-bj2", {"org-1": [bound_eip("e1", "h1", name="")]}, fail={"bind": "denied"})
    outcome = _rotator({"cn-bj2": api})(make_task())
    assert not outcome.ok
    assert outcome.reason == "BindEIP: region=cn-bj2 host=-(h1): denied"
    assert [name for name, _ in api.calls][-1] == "bind"


def test_empty_allocation_is_a_failure() -> None:
    api = FakeEipApi("cn-bj2", {"org-1": [bound_eip("e1", "h1")]}, allocate_empty=True)
    outcome = _rotator({"cn-bj2": api})(make_task())
    assert not outcome.ok
    assert "AllocateEIP returned empty set" in (outcome.reason or "")


def test_all_regions_when_region_empty_first_error_wins(caplog) -> None:
    apis = {
        "cn-bj2": FakeEipApi("cn-bj2", {"org-1": []}),
        "cn-sh2": FakeEipApi("cn-sh2", {"org-1": [bound_eip("e1", "h1")]}),
        "hk": FakeEipApi("hk", {"org-1": [bound_eip("e2", "h2")]}, fail={"describe": "timeout"}),
    }
    directory = FakeRegionDirectory(["cn-bj2", "cn-sh2", "cn-bj2", "hk"])

    with caplog.at_level(logging.WARNING):
        outcome = _rotator(apis, directory)(make_task(region=""))

    assert not outcome.ok
    assert "region=cn-bj2" in (outcome.reason or "")
    # middle region still rotated
    assert "bind" in [name for name, _ in apis["cn-sh2"].calls]
    # later failure surfaced as a warning
    assert any("region hk failed" in r.getMessage() for r in caplog.records)
    # duplicate region visited once
    assert [name for name, _ in apis["cn-bj2"].calls] == ["describe"]


def test_region_listing_failure_fails_tick() -> None:
    outcome = _rotator({}, FakeRegionDirectory([], error="auth"))(make_task(region=""))
    assert not outcome.ok
    assert outcome.reason == "list regions: auth"


def test_binding_from_eip_and_safe_name() -> None:
    b = HostBinding.from_eip(bound_eip("e1", "h1", name="  "), project_id="org-1", region="cn-bj2")
    assert b is not None
    assert b.host_label == "-(h1)"
    assert safe_name("web") == "web"
