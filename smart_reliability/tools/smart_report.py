import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

from pydantic import TypeAdapter
from pydantic import ValidationError

from smart_reliability.interface import DeviceSnapshot
from smart_reliability.interface import RAID_PARITY_MAX
from smart_reliability.interface import ReliabilityReport
from smart_reliability.interface import RepairCadence
from smart_reliability.report import build_report
from smart_reliability.tables import load_profile
from smart_reliability.tables import profile_paths
from smart_reliability.tables import tables

logger = logging.getLogger(__name__)

RULE = " " + "-" * 71
# Width each cadence column is padded to
CADENCE_PAD = {
    RepairCadence.weekly: 20,
    RepairCadence.monthly: 18,
    RepairCadence.quarterly: 14,
}

_snapshots = TypeAdapter(List[DeviceSnapshot])


def load_snapshots(data: Any) -> Tuple[Optional[int], List[DeviceSnapshot]]:
    """Accepts either a plain list of devices or
    {"disk_count": n, "devices": [...]}
    """
    if isinstance(data, dict):
        return data.get("disk_count"), _snapshots.validate_python(
            data.get("devices", [])
        )
    return None, _snapshots.validate_python(data)


def format_percent(value: float) -> str:
    """Formats a percentage with more decimals the smaller it gets

    e.g. 12.34 % but 0.0000012 %, so tiny data loss probabilities stay
    readable next to each other.
    """
    precision = 2
    while precision < 14 and value <= 10.0 ** (1 - precision):
        precision += 1
    return f"{value:{precision + 3}.{precision}f} %"


def _cell(value: Optional[Any], fmt: str, width: int) -> str:
    if value is None:
        return "-".rjust(width)
    return f"{value:{fmt}}".rjust(width)


def render_report(report: ReliabilityReport) -> str:
    serial_pad = max([len(d.snapshot.serial) for d in report.disks] + [len("Serial")])
    device_pad = max([len(d.snapshot.device) for d in report.disks] + [len("Device")])

    lines = [
        "SMART report:",
        "",
        "   Temp  Power  Error AFP Size",
        "     C° OnDays  Count   %   TB  "
        + "Serial".ljust(serial_pad)
        + "  "
        + "Device".ljust(device_pad)
        + "  Disk",
        RULE,
    ]

    for disk in report.disks:
        snapshot = disk.snapshot
        size = "    -" if snapshot.size_tb is None else f"  {snapshot.size_tb:2.1f}"
        lines.append(
            _cell(snapshot.temperature_c, "d", 7)
            + _cell(snapshot.power_on_days, "d", 7)
            + _cell(snapshot.error_count, "d", 6)
            + f"{disk.afp * 100:5.0f}"
            + size
            + "  "
            + (snapshot.serial or "-").ljust(serial_pad)
            + "  "
            + (snapshot.device or "-").ljust(device_pad)
            + "  "
            + (snapshot.name or "- (not in stats)")
        )

    lines += [
        "",
        "The AFP (Annual Failure Probability) is the probability that the disk is",
        "going to fail in the next year.",
        "",
        "Probability of at least one disk failure in the next year is: "
        f"{report.array_failure_probability * 100:.0f} %",
        f"Expected disk failures in the next year: {report.expected_failures.mid:.0f} "
        f"({report.expected_failures.low:.0f} to {report.expected_failures.high:.0f}"
        f" at {report.expected_failures.confidence * 100:.0f}% confidence)",
        "",
        "Probability of data loss in the next year for different parity and",
        "scrub/repair times:",
        "",
        "  Parity  "
        + "".join(c.label.ljust(CADENCE_PAD[c] + 3) for c in RepairCadence).rstrip(),
        RULE,
    ]

    for redundancy in report.redundancy_levels:
        row = f"{redundancy:6d}"
        for cadence in RepairCadence:
            probability = report.data_loss_probability(redundancy, cadence)
            cell = "-" if probability is None else format_percent(probability * 100)
            row += "    " + cell.ljust(CADENCE_PAD[cadence])
        lines.append(row.rstrip())

    lines += [
        "",
        "These are the probabilities that in the next year you'll have a sequence",
        "of failures that the parity WONT be able to recover, assuming that you",
        "regularly scrub and repair the full array in the specified time.",
    ]
    return "\n".join(lines) + "\n"


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="smart-report",
        description="Forecast disk and array failure probabilities from SMART data",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "snapshots",
        type=Path,
        help="JSON file with a list of devices, or {disk_count, devices}",
    )
    parser.add_argument(
        "--disk-count",
        type=int,
        default=None,
        help="Logical disks (data + parity) in the array, defaults to the members",
    )
    parser.add_argument("--max-redundancy", type=int, default=RAID_PARITY_MAX)
    parser.add_argument(
        "--profile",
        choices=sorted(profile_paths()),
        default=None,
        help="Packaged AFR table profile, defaults to $AFR_TABLES_PROFILE",
    )
    parser.add_argument("--json", action="store_true", help="Print the raw report")
    parser.add_argument("--debug", action="store_true", help="Show verbose output")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.profile is not None:
        tables.load(load_profile(args.profile))

    try:
        with open(args.snapshots, encoding="utf-8") as fd:
            disk_count, snapshots = load_snapshots(json.load(fd))
    except (OSError, json.JSONDecodeError, ValidationError) as exp:
        logger.error("Unable to read devices from %s: %s", args.snapshots, exp)
        return 1

    if args.disk_count is not None:
        disk_count = args.disk_count

    report = build_report(
        snapshots, disk_count=disk_count, max_redundancy=args.max_redundancy
    )
    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        sys.stdout.write(render_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
