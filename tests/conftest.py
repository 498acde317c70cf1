import json

import pytest

from raidz_planner.interface import Disk


@pytest.fixture
def small_disk() -> Disk:
    return Disk(name="2TB NAS", size_tb=2.0, cost=1128)


@pytest.fixture
def medium_disk() -> Disk:
    return Disk(name="4TB NAS", size_tb=4.0, cost=1318)


@pytest.fixture
def catalog_path(tmp_path):
    """A single disk catalog written the way catalog files are shipped"""
    path = tmp_path / "disks.json"
    path.write_text(
        json.dumps(
            [
                {
                    "name": "2TB NAS",
                    "size": 2.0,
                    "cost": 1128,
                    "link": "https://example.com/2tb",
                }
            ]
        ),
        encoding="utf-8",
    )
    return path
