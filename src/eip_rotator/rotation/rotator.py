# src/eip_rotator/rotation/rotator.py

from __future__ import annotations

"""
EIP rotation job body.

For every region in scope:
- list EIPs bound to uhosts in each project,
- allocate a replacement with the same operator, bandwidth and billing,
- unbind old -> bind new -> release old (release failure is only a warning).

Regions are independent: all of them are attempted, the first error becomes
the tick's failure reason and later ones are logged as warnings.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..core.ports import EipApi, RegionDirectory
from ..tasks.task_models import JobOutcome, TaskDescriptor

logger = logging.getLogger(__name__)

ApiFactory = Callable[[TaskDescriptor, str], EipApi]
DirectoryFactory = Callable[[TaskDescriptor], RegionDirectory]

# Prepaid charge types need an explicit purchase quantity (1 year / 1 month).
_PREPAID_CHARGE_TYPES = {"Year", "Month"}


class RotationError(RuntimeError):
    """A cloud call in the rotation sequence failed."""


def safe_name(name: str | None) -> str:
    if not name or not name.strip():
        return "-"
    return name


@dataclass(slots=True, frozen=True)
class HostBinding:
    project_id: str
    region: str
    uhost_id: str
    uhost_name: str
    eip_id: str
    bandwidth: int
    pay_mode: str
    operator_name: str
    charge_type: str

    @property
    def host_label(self) -> str:
        return f"{safe_name(self.uhost_name)}({self.uhost_id})"

    @classmethod
    def from_eip(cls, eip: dict[str, Any], *, project_id: str, region: str) -> HostBinding | None:
        """Return a binding for an EIP in use by a uhost, None for anything else."""
        if str(eip.get("Status") or "").lower() != "used":
            return None
        resource = eip.get("Resource") or {}
        if str(resource.get("ResourceType") or "").lower() != "uhost":
            return None
        resource_id = str(resource.get("ResourceID") or "")
        if not resource_id:
            return None

        addrs = eip.get("EIPAddr") or []
        operator = str(addrs[0].get("OperatorName") or "") if addrs else ""

        return cls(
            project_id=project_id,
            region=region,
            uhost_id=resource_id,
            uhost_name=str(resource.get("ResourceName") or ""),
            eip_id=str(eip.get("EIPId") or ""),
            bandwidth=int(eip.get("Bandwidth") or 0),
            pay_mode=str(eip.get("PayMode") or ""),
            operator_name=operator,
            charge_type=str(eip.get("ChargeType") or ""),
        )


class EipRotator:
    """Job body: rotate every uhost-bound EIP of a task once."""

    def __init__(self, api_factory: ApiFactory, directory_factory: DirectoryFactory) -> None:
        self._api_factory = api_factory
        self._directory_factory = directory_factory

    def __call__(self, task: TaskDescriptor) -> JobOutcome:
        try:
            self.rotate_once(task)
        except RotationError as e:
            return JobOutcome.failure(str(e))
        return JobOutcome.success()

    def resolve_regions(self, task: TaskDescriptor) -> list[str]:
        if task.region.strip():
            return [task.region.strip()]

        try:
            raw = self._directory_factory(task).list_regions()
        except RotationError as e:
            raise RotationError(f"list regions: {e}") from e

        regions: list[str] = []
        for region in raw:
            if region and region not in regions:
                regions.append(region)
        return regions

    def rotate_once(self, task: TaskDescriptor) -> None:
        regions = self.resolve_regions(task)
        if not regions:
            logger.warning("no accessible regions for projects=%s", ",".join(task.project_ids))
            return

        first_err: RotationError | None = None
        for region in regions:
            try:
                self.rotate_region(task, region)
            except RotationError as e:
                if first_err is None:
                    first_err = e
                else:
                    logger.warning("region %s failed: %s", region, e)
        if first_err is not None:
            raise first_err

    def collect_bindings(self, api: EipApi, task: TaskDescriptor, region: str) -> list[HostBinding]:
        bindings: list[HostBinding] = []
        for project in task.project_ids:
            try:
                eips = api.describe_eips(project)
            except RotationError as e:
                raise RotationError(f"DescribeEIP: region={region} project={project}: {e}") from e
            for eip in eips:
                binding = HostBinding.from_eip(eip, project_id=project, region=region)
                if binding is not None:
                    bindings.append(binding)
        return bindings

    def rotate_region(self, task: TaskDescriptor, region: str) -> None:
        api = self._api_factory(task, region)

        bindings = self.collect_bindings(api, task, region)
        if not bindings:
            raise RotationError(f"no bound EIP found under given projects (region={region})")

        for b in bindings:
            self.rotate_binding(api, b)

    def rotate_binding(self, api: EipApi, b: HostBinding) -> str:
        """Swap one host's EIP; returns the new EIP id."""
        ctx = f"region={b.region} host={b.host_label}"

        quantity = 1 if b.charge_type in _PREPAID_CHARGE_TYPES else None
        try:
            allocated = api.allocate_eip(
                project_id=b.project_id,
                operator_name=b.operator_name,
                bandwidth=b.bandwidth,
                pay_mode=b.pay_mode,
                charge_type=b.charge_type,
                quantity=quantity,
            )
        except RotationError as e:
            raise RotationError(f"AllocateEIP: {ctx}: {e}") from e
        if not allocated:
            raise RotationError(f"AllocateEIP returned empty set: {ctx}")
        new_eip_id = str(allocated[0].get("EIPId") or "")

        try:
            api.unbind_eip(project_id=b.project_id, eip_id=b.eip_id, resource_id=b.uhost_id)
        except RotationError as e:
            raise RotationError(f"UnBindEIP: {ctx}: {e}") from e

        try:
            api.bind_eip(project_id=b.project_id, eip_id=new_eip_id, resource_id=b.uhost_id)
        except RotationError as e:
            raise RotationError(f"BindEIP: {ctx}: {e}") from e

        try:
            api.release_eip(project_id=b.project_id, eip_id=b.eip_id)
        except RotationError as e:
            logger.warning("%s ReleaseEIP failed for %s: %s", ctx, b.eip_id, e)

        logger.info("rotated EIP %s old=%s new=%s", ctx, b.eip_id, new_eip_id)
        return new_eip_id
