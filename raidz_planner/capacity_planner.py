# -*- coding: utf-8 -*-
import logging
from typing import Iterable
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

import numpy as np

from raidz_planner.hardware import DiskShapes
from raidz_planner.hardware import shapes
from raidz_planner.interface import Disk
from raidz_planner.interface import PlanRequest
from raidz_planner.interface import RedundancyScheme
from raidz_planner.interface import SchemePlan
from raidz_planner.interface import Vdev
from raidz_planner.interface import VdevMetrics

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISKS = 24
DEFAULT_RANGE_RATIO = 0.30


def storage_window(target_storage: float, range_ratio: float) -> Tuple[float, float]:
    """Inclusive [low, high] usable TB accepted for a target"""
    return target_storage * (1 - range_ratio), target_storage * (1 + range_ratio)


def find_configurations(  # pylint: disable=too-many-positional-arguments
    target_storage: float,
    disk_options: Sequence[Disk],
    max_disks: int,
    range_ratio: float,
    scheme: RedundancyScheme,
) -> List[Vdev]:
    """Every vdev of this scheme whose usable storage lands near the target

    The sweep is exhaustive: each disk in catalog order, then each member
    count from the scheme minimum up to max_disks inclusive. Both window
    edges are accepted. The result is in sweep order, see
    rank_configurations for ordering by cost.
    """
    min_storage, max_storage = storage_window(target_storage, range_ratio)

    configs: List[Vdev] = []
    for disk in disk_options:
        # Empty when max_disks < scheme.min_disks
        for num_disks in range(scheme.min_disks, max_disks + 1):
            vdev = Vdev(scheme=scheme, disk=disk, num_disks=num_disks)
            if min_storage <= vdev.usable_storage_tb <= max_storage:
                configs.append(vdev)

    logger.debug(
        "%s: %d candidates in [%.2f, %.2f] TB from %d disk options",
        scheme.display_name,
        len(configs),
        min_storage,
        max_storage,
        len(disk_options),
    )
    return configs


def rank_configurations(vdevs: Iterable[Vdev]) -> List[Vdev]:
    """Cheapest first, equal costs keep their sweep order"""
    vdevs = list(vdevs)
    if not vdevs:
        return []
    costs = np.array([v.total_cost for v in vdevs], dtype=float)
    return [vdevs[i] for i in np.argsort(costs, kind="stable")]


def vdev_metrics(vdev: Vdev, target_storage: float) -> VdevMetrics:
    deviation = vdev.usable_storage_tb - target_storage
    return VdevMetrics(
        target_tb=target_storage,
        deviation_tb=deviation,
        deviation_percent=abs(deviation) / target_storage * 100,
        cost_per_usable_tb=vdev.cost_per_usable_tb,
        cost_per_raw_tb=vdev.cost_per_raw_tb,
    )


class VdevPlanner:
    def __init__(
        self,
        disks: Optional[Sequence[Disk]] = None,
        default_max_disks: int = DEFAULT_MAX_DISKS,
        default_range_ratio: float = DEFAULT_RANGE_RATIO,
    ):
        self._shapes: DiskShapes = shapes
        self._disks: Optional[List[Disk]] = None if disks is None else list(disks)
        self._default_max_disks = default_max_disks
        self._default_range_ratio = default_range_ratio

    @property
    def disks(self) -> List[Disk]:
        if self._disks is None:
            return self._shapes.disks
        return self._disks

    @property
    def default_max_disks(self) -> int:
        return self._default_max_disks

    @property
    def default_range_ratio(self) -> float:
        return self._default_range_ratio

    def plan(  # pylint: disable=too-many-positional-arguments
        self,
        target_tb: float,
        range_ratio: Optional[float] = None,
        max_disks: Optional[int] = None,
        schemes: Optional[Sequence[RedundancyScheme]] = None,
        disks: Optional[Sequence[Disk]] = None,
    ) -> List[SchemePlan]:
        """Ranked candidate vdevs for each scheme, in the order requested

        A scheme without any candidate is returned with no vdevs rather than
        dropped, so callers can report it.
        """
        if target_tb <= 0:
            raise ValueError(f"target_tb={target_tb} must be positive")
        if range_ratio is not None and range_ratio < 0:
            raise ValueError(f"range_ratio={range_ratio} must not be negative")

        request = PlanRequest(
            target_tb=target_tb,
            range_ratio=(
                self._default_range_ratio if range_ratio is None else range_ratio
            ),
            max_disks=self._default_max_disks if max_disks is None else max_disks,
            schemes=tuple(RedundancyScheme) if schemes is None else tuple(schemes),
        )
        return self.plan_request(request, disks=disks)

    def plan_request(
        self, request: PlanRequest, disks: Optional[Sequence[Disk]] = None
    ) -> List[SchemePlan]:
        disk_options = self.disks if disks is None else list(disks)
        logger.debug(
            "Planning %.2f TB +/- %.0f%% over %d disk options, max %d disks",
            request.target_tb,
            request.range_ratio * 100,
            len(disk_options),
            request.max_disks,
        )

        plans: List[SchemePlan] = []
        for scheme in request.schemes:
            matches = find_configurations(
                target_storage=request.target_tb,
                disk_options=disk_options,
                max_disks=request.max_disks,
                range_ratio=request.range_ratio,
                scheme=scheme,
            )
            plans.append(
                SchemePlan(
                    scheme=scheme,
                    target_tb=request.target_tb,
                    range_ratio=request.range_ratio,
                    min_storage_tb=request.min_storage_tb,
                    max_storage_tb=request.max_storage_tb,
                    vdevs=rank_configurations(matches),
                )
            )
        return plans


planner = VdevPlanner()
