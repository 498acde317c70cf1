from __future__ import annotations

from enum import Enum
from typing import Dict
from typing import List
from typing import Optional
from typing import Sequence

import numpy as np
from pydantic import AliasChoices
from pydantic import BaseModel
from pydantic import computed_field
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator

# Absolute tolerance (in TB) for treating a capacity as an exact match
FLOAT_TOLERANCE_TB = 1e-9


class ExcludeUnsetModel(BaseModel):
    def model_dump(self, *args, **kwargs):
        if "exclude_unset" not in kwargs:
            kwargs["exclude_unset"] = True
        return super().model_dump(*args, **kwargs)

    def model_dump_json(self, *args, **kwargs):
        if "exclude_unset" not in kwargs:
            kwargs["exclude_unset"] = True
        return super().model_dump_json(*args, **kwargs)


###############################################################################
#                               Errors                                        #
###############################################################################


class CapacityPlanningError(Exception):
    """Base class of errors raised by the planner"""


class InvalidMemberCount(CapacityPlanningError):
    """A vdev was built with fewer member disks than its scheme allows

    This is a caller contract violation, not bad user input, so it is never
    clamped or converted into an empty result.
    """

    def __init__(self, scheme: RedundancyScheme, num_disks: int):
        self.scheme = scheme
        self.num_disks = num_disks
        super().__init__(
            f"{scheme.display_name} requires at least {scheme.min_disks} disks, "
            f"got num_disks={num_disks}"
        )


###############################################################################
#              Models (structs) for how we describe redundancy                #
###############################################################################


class RedundancyScheme(str, Enum):
    """Represents the parity level of a RAID-Z vdev

    Each level sacrifices that many disks' worth of capacity to parity and
    tolerates that many concurrent disk failures.
    """

    def __str__(self):
        return str(self.value)

    raidz1 = "raidz1"
    raidz2 = "raidz2"
    raidz3 = "raidz3"

    @property
    def min_disks(self) -> int:
        return _MIN_DISKS[self]

    @property
    def parity_overhead(self) -> int:
        return _PARITY_OVERHEAD[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    def usable_storage(self, disk: Disk, num_disks: int) -> float:
        if num_disks < self.min_disks:
            raise InvalidMemberCount(self, num_disks)
        return disk.size_tb * (num_disks - self.parity_overhead)


# Every vdev must keep at least one data disk once parity is subtracted
_MIN_DISKS: Dict[RedundancyScheme, int] = {
    RedundancyScheme.raidz1: 3,
    RedundancyScheme.raidz2: 4,
    RedundancyScheme.raidz3: 5,
}

_PARITY_OVERHEAD: Dict[RedundancyScheme, int] = {
    RedundancyScheme.raidz1: 1,
    RedundancyScheme.raidz2: 2,
    RedundancyScheme.raidz3: 3,
}

_DISPLAY_NAMES: Dict[RedundancyScheme, str] = {
    RedundancyScheme.raidz1: "RAID-Z1",
    RedundancyScheme.raidz2: "RAID-Z2",
    RedundancyScheme.raidz3: "RAID-Z3",
}


def _check_schemes() -> None:
    for scheme in RedundancyScheme:
        if scheme.parity_overhead >= scheme.min_disks:
            raise CapacityPlanningError(
                f"{scheme.display_name} has parity_overhead={scheme.parity_overhead} "
                f"which leaves no data disks at min_disks={scheme.min_disks}"
            )


_check_schemes()


def min_disks(scheme: RedundancyScheme) -> int:
    return scheme.min_disks


def usable_storage(scheme: RedundancyScheme, disk: Disk, num_disks: int) -> float:
    return scheme.usable_storage(disk, num_disks)


def scheme_name(scheme: RedundancyScheme) -> str:
    return scheme.display_name


###############################################################################
#              Models (structs) for how we describe hardware                  #
###############################################################################


class Disk(ExcludeUnsetModel):
    """Represents a purchasable disk, e.g. a 4 TB NAS hard drive

    Catalog records spell the capacity as "size", both spellings are accepted.
    """

    name: str = ""
    size_tb: float = Field(
        gt=0, validation_alias=AliasChoices("size_tb", "size", "size-tb")
    )
    cost: float = Field(ge=0)
    # Where the price was taken from, only used for display
    link: Optional[str] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Vdev(ExcludeUnsetModel):
    """A candidate RAID-Z vdev: num_disks identical disks under one scheme

    Capacities and costs are derived on access, never stored. Because
    num_disks >= min_disks > parity_overhead both usable and raw storage are
    strictly positive, so the per TB costs never divide by zero.
    """

    scheme: RedundancyScheme
    disk: Disk
    num_disks: int

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_member_count(self) -> Vdev:
        if self.num_disks < self.scheme.min_disks:
            raise InvalidMemberCount(self.scheme, self.num_disks)
        return self

    @computed_field(return_type=float)  # type: ignore
    @property
    def usable_storage_tb(self):
        return self.scheme.usable_storage(self.disk, self.num_disks)

    @computed_field(return_type=float)  # type: ignore
    @property
    def raw_storage_tb(self):
        return self.disk.size_tb * self.num_disks

    @computed_field(return_type=float)  # type: ignore
    @property
    def total_cost(self):
        return self.disk.cost * self.num_disks

    @property
    def cost_per_usable_tb(self) -> float:
        return self.total_cost / self.usable_storage_tb

    @property
    def cost_per_raw_tb(self) -> float:
        return self.total_cost / self.raw_storage_tb


class VdevMetrics(ExcludeUnsetModel):
    """How one vdev compares to the requested usable capacity"""

    target_tb: float
    deviation_tb: float
    # Always non negative, the sign lives in deviation_tb
    deviation_percent: float
    cost_per_usable_tb: float
    cost_per_raw_tb: float

    model_config = ConfigDict(frozen=True)

    @property
    def is_exact(self) -> bool:
        return bool(
            np.isclose(self.deviation_tb, 0.0, rtol=0.0, atol=FLOAT_TOLERANCE_TB)
        )

    @property
    def signed_deviation_percent(self) -> float:
        if self.is_exact:
            return 0.0
        if self.deviation_tb < 0:
            return -self.deviation_percent
        return self.deviation_percent


###############################################################################
#                    Models (structs) for requests and plans                  #
###############################################################################


class PlanRequest(ExcludeUnsetModel):
    """What the caller wants: a usable capacity and how far off it may be"""

    target_tb: float = Field(gt=0)
    # Fractional tolerance, 0.30 means +/- 30%
    range_ratio: float = Field(default=0.30, ge=0)
    max_disks: int = Field(default=24, ge=1)
    schemes: Sequence[RedundancyScheme] = tuple(RedundancyScheme)

    model_config = ConfigDict(frozen=True)

    @property
    def min_storage_tb(self) -> float:
        return self.target_tb * (1 - self.range_ratio)

    @property
    def max_storage_tb(self) -> float:
        return self.target_tb * (1 + self.range_ratio)


class SchemePlan(ExcludeUnsetModel):
    """The candidate vdevs of one scheme, cheapest first"""

    scheme: RedundancyScheme
    target_tb: float
    range_ratio: float
    min_storage_tb: float
    max_storage_tb: float
    vdevs: List[Vdev] = []

    @property
    def is_empty(self) -> bool:
        return len(self.vdevs) == 0
