import io
import json

import pytest

from raidz_planner.hardware import CATALOG_ENV_VAR
from raidz_planner.tools.raidz_calc import format_table
from raidz_planner.tools.raidz_calc import main
from raidz_planner.tools.raidz_calc import parse_target


def test_parse_target():
    assert parse_target("10") == 10.0
    assert parse_target(" 12.5\n") == 12.5
    assert parse_target("ten") is None
    assert parse_target(None) is None


def test_format_table():
    table = format_table(("a", "long header"), [["wide cell", "x"]])
    lines = table.splitlines()

    assert lines[0] == lines[2] == lines[-1]
    assert lines[1] == "| a         | long header |"
    assert lines[3] == "| wide cell | x           |"


def test_table_output(capsys, catalog_path):
    code = main(["10", "--catalog", str(catalog_path), "--scheme", "raidz1"])
    out = capsys.readouterr().out

    assert code == 0
    assert "Assuming a maximum of 24 disks" in out
    assert "within ±30% of 10.00 TB" in out
    assert "Strategy RAID-Z1" in out
    assert "Strategy RAID-Z2" not in out

    rows = [line for line in out.splitlines() if "2TB NAS" in line]
    # Cheapest first
    assert "8.00 (-20.00%)" in rows[0]
    assert "| 10.00 " in rows[1]
    assert "%" not in rows[1]
    assert "12.00 (+20.00%)" in rows[2]
    assert "5640.00" in rows[0]
    assert "705.00" in rows[0]


def test_no_results(capsys, catalog_path):
    code = main(["1000", "--catalog", str(catalog_path), "--max-disks", "4"])
    out = capsys.readouterr().out

    assert code == 0
    assert (
        "No configurations available within ±30% of 1000.00 TB of usable storage."
        in out
    )
    assert "Strategy" not in out


def test_one_scheme_without_results(capsys, catalog_path):
    code = main(["4", "--catalog", str(catalog_path), "--max-disks", "4"])
    out = capsys.readouterr().out

    assert code == 0
    assert "Strategy RAID-Z1" in out
    assert "Strategy RAID-Z3" in out
    assert "No configurations available within ±30% of 4.00 TB" in out


def test_prompts_for_target(capsys, monkeypatch, catalog_path):
    monkeypatch.setattr("sys.stdin", io.StringIO("10\n"))
    code = main(["--catalog", str(catalog_path)])
    out = capsys.readouterr().out

    assert code == 0
    assert "Enter your target usable storage in TB:" in out
    assert "Strategy RAID-Z1" in out


def test_invalid_prompt_answer(capsys, monkeypatch, catalog_path):
    monkeypatch.setattr("sys.stdin", io.StringIO("lots\n"))
    code = main(["--catalog", str(catalog_path)])
    out = capsys.readouterr().out

    assert code == 1
    assert "Invalid input. Please enter a valid number." in out


def test_json_output(capsys, catalog_path):
    code = main(["10", "--catalog", str(catalog_path), "--json"])
    plans = json.loads(capsys.readouterr().out)

    assert code == 0
    assert [p["scheme"] for p in plans] == ["raidz1", "raidz2", "raidz3"]
    first = plans[0]["vdevs"][0]
    assert first["num_disks"] == 5
    assert first["usable_storage_tb"] == 8.0
    assert first["total_cost"] == 5640.0


def test_catalog_from_env(capsys, monkeypatch, tmp_path):
    path = tmp_path / "env.json"
    path.write_text(
        json.dumps([{"name": "ENVDISK", "size": 2.0, "cost": 1000}]), encoding="utf-8"
    )
    monkeypatch.setenv(CATALOG_ENV_VAR, str(path))

    code = main(["10", "--scheme", "raidz1"])
    out = capsys.readouterr().out

    assert code == 0
    assert "ENVDISK" in out
    assert "WD Red Plus" not in out


def test_catalog_flag_overrides_env(capsys, monkeypatch, tmp_path, catalog_path):
    path = tmp_path / "env.json"
    path.write_text(
        json.dumps([{"name": "ENVDISK", "size": 2.0, "cost": 1000}]), encoding="utf-8"
    )
    monkeypatch.setenv(CATALOG_ENV_VAR, str(path))

    main(["10", "--catalog", str(catalog_path), "--scheme", "raidz1"])
    out = capsys.readouterr().out

    assert "2TB NAS" in out
    assert "ENVDISK" not in out


@pytest.mark.parametrize("target", ["-5", "0", "nan", "inf"])
def test_non_positive_target_is_rejected(capsys, monkeypatch, target):
    # A number that parses is not prompted for again
    monkeypatch.setattr("sys.stdin", io.StringIO("10\n"))
    code = main([target])
    out = capsys.readouterr().out

    assert code == 1
    assert "Invalid input. Please enter a valid number." in out
    assert "Enter your target" not in out
