import argparse
import logging
import math
import sys
from pathlib import Path
from typing import List
from typing import Optional
from typing import Sequence
from typing import TextIO

from pydantic import TypeAdapter

from raidz_planner.capacity_planner import DEFAULT_MAX_DISKS
from raidz_planner.capacity_planner import DEFAULT_RANGE_RATIO
from raidz_planner.capacity_planner import vdev_metrics
from raidz_planner.capacity_planner import VdevPlanner
from raidz_planner.hardware import load_catalog_from_env
from raidz_planner.hardware import load_disks_from_disk
from raidz_planner.interface import RedundancyScheme
from raidz_planner.interface import SchemePlan

logger = logging.getLogger(__name__)

PLANS_ADAPTER = TypeAdapter(List[SchemePlan])

COLUMNS = (
    "Name",
    "Disk Size (TB)",
    "# Disks",
    "Usable Storage (TB)",
    "Raw Storage (TB)",
    "Total Cost",
    "Cost per usable TB",
    "Cost per raw TB",
)


def parse_target(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(raw.strip())
    except ValueError:
        return None


def prompt_target(out: TextIO = sys.stdout) -> Optional[float]:
    print("Enter your target usable storage in TB:", file=out, flush=True)
    return parse_target(sys.stdin.readline())


def _usable_cell(plan: SchemePlan, index: int) -> str:
    vdev = plan.vdevs[index]
    metrics = vdev_metrics(vdev, plan.target_tb)
    if metrics.is_exact:
        return f"{vdev.usable_storage_tb:.2f}"
    return f"{vdev.usable_storage_tb:.2f} ({metrics.signed_deviation_percent:+.2f}%)"


def format_rows(plan: SchemePlan) -> List[List[str]]:
    rows = []
    for i, vdev in enumerate(plan.vdevs):
        rows.append(
            [
                vdev.disk.name,
                f"{vdev.disk.size_tb:.2f}",
                str(vdev.num_disks),
                _usable_cell(plan, i),
                f"{vdev.raw_storage_tb:.2f}",
                f"{vdev.total_cost:.2f}",
                f"{vdev.cost_per_usable_tb:.2f}",
                f"{vdev.cost_per_raw_tb:.2f}",
            ]
        )
    return rows


def format_table(header: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    rule = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def line(cells: Sequence[str]) -> str:
        return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths)) + " |"

    lines = [rule, line(header), rule]
    lines.extend(line(row) for row in rows)
    lines.append(rule)
    return "\n".join(lines)


def no_results_message(range_percent: float, target_tb: float) -> str:
    return (
        f"No configurations available within ±{range_percent:g}% of "
        f"{target_tb:.2f} TB of usable storage."
    )


def render_plans(plans: Sequence[SchemePlan], range_percent: float) -> str:
    if not plans:
        return ""
    target_tb = plans[0].target_tb
    if all(plan.is_empty for plan in plans):
        return no_results_message(range_percent, target_tb)

    out = [
        f"Configurations that are within ±{range_percent:g}% of {target_tb:.2f} TB "
        "of usable storage:",
        "",
    ]
    for plan in plans:
        out.append(f"Strategy {plan.scheme.display_name}")
        if plan.is_empty:
            out.append(no_results_message(range_percent, target_tb))
        else:
            out.append(format_table(COLUMNS, format_rows(plan)))
        out.append("")
    return "\n".join(out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raidz-calc",
        description="Find RAID-Z vdev configurations near a usable storage target",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Target usable storage in TB, prompted for if not given",
    )
    parser.add_argument(
        "--range-percent",
        type=float,
        default=DEFAULT_RANGE_RATIO * 100,
        help="Accept configurations within this many percent of the target",
    )
    parser.add_argument("--max-disks", type=int, default=DEFAULT_MAX_DISKS)
    parser.add_argument(
        "--catalog",
        type=Path,
        action="append",
        default=None,
        help=(
            "JSON disk catalog to use instead of the packaged one. May be "
            "given more than once. Defaults to $RAIDZ_DISK_CATALOG if set"
        ),
    )
    parser.add_argument(
        "--scheme",
        action="append",
        choices=[s.value for s in RedundancyScheme],
        default=None,
        help="Only plan for this scheme. May be given more than once",
    )
    parser.add_argument("--json", action="store_true", help="Print plans as JSON")
    parser.add_argument("--debug", action="store_true", help="Show verbose output")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    # Keep stdout clean for --json
    out = sys.stderr if args.json else sys.stdout
    print("RAID-Z configuration calculator", file=out)
    target_tb = parse_target(args.target)
    if target_tb is None:
        if args.target is not None:
            logger.debug("Could not parse target=%r, prompting", args.target)
        target_tb = prompt_target(out)
    if target_tb is None or not math.isfinite(target_tb) or target_tb <= 0:
        print("Invalid input. Please enter a valid number.", file=out)
        return 1
    if args.range_percent < 0 or args.max_disks < 1:
        print(
            "--range-percent must not be negative and --max-disks must be >= 1",
            file=out,
        )
        return 1

    if args.catalog:
        disks = load_disks_from_disk(catalog_paths=args.catalog)
    else:
        # None falls back to the packaged catalog
        disks = load_catalog_from_env()

    schemes = None
    if args.scheme:
        schemes = [RedundancyScheme(s) for s in args.scheme]

    plans = VdevPlanner(disks=disks).plan(
        target_tb,
        range_ratio=args.range_percent / 100,
        max_disks=args.max_disks,
        schemes=schemes,
    )

    if args.json:
        print(PLANS_ADAPTER.dump_json(plans, indent=2).decode("utf-8"))
        return 0

    print()
    print(f"Assuming a maximum of {args.max_disks} disks")
    print(render_plans(plans, args.range_percent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
