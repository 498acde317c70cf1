# pylint: disable=cyclic-import
# in DiskShapes.disks it imports from hardware.profiles dynamically
import json
import logging
import os
from pathlib import Path
from typing import Any
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

from raidz_planner.interface import Disk

logger = logging.getLogger(__name__)

CATALOG_ENV_VAR = "RAIDZ_DISK_CATALOG"


def load_disks(records: Sequence[Any]) -> List[Disk]:
    disks: List[Disk] = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning("Catalog entry %d is not an object, skipping: %r", i, record)
            continue
        disks.append(Disk(**record))
    return disks


def _catalog_records(data: Any, source: Union[Path, str]) -> List[Any]:
    # Catalog files are either a bare list or {"disks": [...]}
    if isinstance(data, dict):
        if not isinstance(data.get("disks"), list):
            raise ValueError(
                f"Disk catalog {source} must be a list or an object with a "
                f'"disks" list, found keys {sorted(data.keys())}'
            )
        return data["disks"]
    if not isinstance(data, list):
        raise ValueError(f"Disk catalog {source} must be a list of disks")
    return data


def load_disks_from_disk(
    catalog_paths: Union[List[Path], Optional[str]] = None,
) -> List[Disk]:
    """Load and concatenate disk catalogs from JSON files

    A string is treated as an os.pathsep separated list of paths, which is
    how RAIDZ_DISK_CATALOG names several catalogs. Order is preserved, both
    across files and within a file.
    """
    if catalog_paths is None:
        return []
    if isinstance(catalog_paths, str):
        catalog_paths = [Path(p) for p in catalog_paths.split(os.pathsep) if p]

    disks: List[Disk] = []
    for catalog_path in catalog_paths:
        logger.debug("Loading disk catalog from: %s", catalog_path)
        with open(catalog_path, encoding="utf-8") as fd:
            records = _catalog_records(json.load(fd), catalog_path)
        loaded = load_disks(records)
        if not loaded:
            logger.warning("Disk catalog %s has no disks", catalog_path)
        disks.extend(loaded)
    return disks


def load_catalog_from_env() -> Optional[List[Disk]]:
    """Disks named by RAIDZ_DISK_CATALOG, or None when it is unset"""
    catalog_paths = os.environ.get(CATALOG_ENV_VAR)
    if not catalog_paths:
        return None
    logger.debug("Using %s=%s", CATALOG_ENV_VAR, catalog_paths)
    return load_disks_from_disk(catalog_paths)


class DiskShapes:
    def __init__(self):
        self._disks: Optional[List[Disk]] = None

    def load(self, new_disks: Sequence[Disk]) -> None:
        self._disks = list(new_disks)

    @property
    def disks(self) -> List[Disk]:
        if self._disks is None:
            disks = load_catalog_from_env()
            if disks is None:
                from raidz_planner.hardware.profiles import default_catalog

                disks = default_catalog()
            self._disks = disks
        return self._disks

    def disk(self, name: str) -> Disk:
        for disk in self.disks:
            if disk.name == name:
                return disk

        raise KeyError(f"Unknown disk {name}")


shapes: DiskShapes = DiskShapes()
