import logging
from importlib import resources
from pathlib import Path
from typing import List

from raidz_planner.hardware import load_disks_from_disk
from raidz_planner.interface import Disk

logger = logging.getLogger(__name__)

CATALOG_FILE = "disks.json"


def default_catalog() -> List[Disk]:
    """The disk catalog shipped with the package, in file order"""
    with resources.as_file(resources.files(__name__).joinpath(CATALOG_FILE)) as path:
        logger.debug("Loading packaged disk catalog from %s", path)
        return load_disks_from_disk(catalog_paths=[Path(path)])
