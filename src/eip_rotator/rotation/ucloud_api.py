# src/eip_rotator/rotation/ucloud_api.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ucloud.client import Client
from ucloud.core import exc

from ..tasks.task_models import TaskDescriptor
from .rotator import RotationError

logger = logging.getLogger(__name__)

_PAGE_SIZE = 100


def _client_config(
        task: TaskDescriptor,
        *,
        region: str | None,
        timeout: float,
        max_retries: int,
) -> dict[str, Any]:
    cfg: dict[str, Any] = {
        "public_key": task.public_key,
        "private_key": task.private_key,
        "timeout": max(1, int(timeout)),
        "max_retries": max(0, int(max_retries)),
    }
    if region:
        cfg["region"] = region
    return cfg


def _call(fn: Callable[[dict[str, Any]], Any], req: dict[str, Any]) -> dict[str, Any]:
    """Run one SDK call, mapping SDK/transport errors to RotationError."""
    try:
        resp = fn(req)
    except (exc.UCloudException, OSError) as e:
        raise RotationError(str(e) or type(e).__name__) from e
    return resp or {}


class UCloudEipApi:
    """EipApi over the UCloud UNet service, bound to one region."""

    def __init__(
            self,
            task: TaskDescriptor,
            region: str,
            *,
            timeout: float = 30.0,
            max_retries: int = 0,
    ) -> None:
        self.region = region
        client = Client(_client_config(task, region=region, timeout=timeout, max_retries=max_retries))
        self._unet = client.unet()

    def describe_eips(self, project_id: str) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        offset = 0
        while True:
            resp = _call(
                self._unet.describe_eip,
                {"ProjectId": project_id, "Offset": offset, "Limit": _PAGE_SIZE},
            )
            page = list(resp.get("EIPSet") or [])
            out.extend(page)
            total = int(resp.get("TotalCount") or 0)
            offset += len(page)
            if not page or offset >= total:
                break
        logger.debug("DescribeEIP region=%s project=%s count=%d", self.region, project_id, len(out))
        return out

    def allocate_eip(
            self,
            *,
            project_id: str,
            operator_name: str,
            bandwidth: int,
            pay_mode: str,
            charge_type: str,
            quantity: int | None = None,
    ) -> list[dict[str, Any]]:
        req: dict[str, Any] = {
            "ProjectId": project_id,
            "OperatorName": operator_name,
            "Bandwidth": bandwidth,
            "PayMode": pay_mode,
            "ChargeType": charge_type,
        }
        if quantity is not None:
            req["Quantity"] = quantity
        resp = _call(self._unet.allocate_eip, req)
        return list(resp.get("EIPSet") or [])

    def unbind_eip(self, *, project_id: str, eip_id: str, resource_id: str) -> None:
        _call(
            self._unet.un_bind_eip,
            {
                "ProjectId": project_id,
                "EIPId": eip_id,
                "ResourceType": "uhost",
                "ResourceId": resource_id,
            },
        )

    def bind_eip(self, *, project_id: str, eip_id: str, resource_id: str) -> None:
        _call(
            self._unet.bind_eip,
            {
                "ProjectId": project_id,
                "EIPId": eip_id,
                "ResourceType": "uhost",
                "ResourceId": resource_id,
            },
        )

    def release_eip(self, *, project_id: str, eip_id: str) -> None:
        _call(self._unet.release_eip, {"ProjectId": project_id, "EIPId": eip_id})


class UCloudRegionDirectory:
    """Lists regions accessible to the account (UAccount GetRegion)."""

    def __init__(self, task: TaskDescriptor, *, timeout: float = 30.0, max_retries: int = 0) -> None:
        client = Client(_client_config(task, region=None, timeout=timeout, max_retries=max_retries))
        self._uaccount = client.uaccount()

    def list_regions(self) -> list[str]:
        resp = _call(self._uaccount.get_region, {})
        return [str(r.get("Region") or "") for r in resp.get("Regions") or []]
