"""
BloodMatch CLI entrypoint.

Quick local lookups against the directory without running the API:
- `nearby-bloodbanks`: nearest blood banks for a location and blood type
- `incoming-requests`: urgent requests a critical-ready donor would see
- `critical-donors`: opted-in donors near a location
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from bloodmatch.config.settings import get_settings
from bloodmatch.core.geo import GeoPoint
from bloodmatch.core.logging import configure_logging
from bloodmatch.directory.loader import Directory, NotFound, load_directory
from bloodmatch.domain.models import BLOOD_TYPES
from bloodmatch.emergency.flows import critical_donors_near, incoming_requests, nearby_blood_banks
from bloodmatch.matching.proximity import InvalidQuery


def _load(args: argparse.Namespace) -> Directory:
    return load_directory(args.directory or get_settings().directory.path)


def _print_json(model: Any) -> None:
    print(json.dumps(model.model_dump(mode="json"), ensure_ascii=False, indent=2))


def _cmd_nearby_blood_banks(args: argparse.Namespace) -> int:
    result = nearby_blood_banks(
        GeoPoint(lat=args.lat, lon=args.lon),
        args.blood_type,
        directory=_load(args),
        settings=get_settings(),
        radius_km=args.radius_km,
        limit=args.limit,
    )
    if args.json:
        _print_json(result)
        return 0

    if result.search_expanded:
        print(f"No blood banks within the emergency radius; showing all within {result.radius_km:.0f} km.")
    print(f"Blood banks for {result.blood_type}:")
    for i, row in enumerate(result.results, start=1):
        stock = "in stock" if row.has_requested_blood_type else "no stock"
        print(f"{i:>2}. {row.blood_bank.name}  {row.distance_km:.1f} km  ({stock})")
    if result.mean_distance_km is not None:
        print(f"Average distance: {result.mean_distance_km:.1f} km")
    if result.far_notice:
        print("Blood banks are relatively far; consider calling emergency services.")
    return 0


def _cmd_incoming_requests(args: argparse.Namespace) -> int:
    directory = _load(args)
    donor = directory.get_donor(args.donor_id)
    result = incoming_requests(donor, directory=directory, settings=get_settings())
    if args.json:
        _print_json(result)
        return 0

    if result.reason != "ok":
        print(f"No requests: {result.reason.replace('_', ' ')}")
        return 0
    print(f"{result.total} request(s) within {result.service_radius_km:.1f} km of {donor.name}:")
    for item in result.requests:
        r = item.request
        where = r.hospital_location or "location not specified"
        print(f"  - {r.id} {r.blood_type} x{r.units_required}  {item.distance_km:.1f} km  {where}")
    return 0


def _cmd_critical_donors(args: argparse.Namespace) -> int:
    result = critical_donors_near(
        GeoPoint(lat=args.lat, lon=args.lon),
        args.blood_type,
        directory=_load(args),
        settings=get_settings(),
        radius_km=args.radius_km,
        limit=args.limit,
    )
    if args.json:
        _print_json(result)
        return 0

    print(f"{result.total} critical-ready {result.blood_type} donor(s) within {result.radius_km:.1f} km:")
    for item in result.donors:
        contact = item.donor.mobile_number or item.donor.email or "-"
        print(f"  - {item.donor.name}  {item.distance_km:.1f} km  {contact}")
    return 0


def _add_location_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--lat", required=True, type=float)
    p.add_argument("--lon", required=True, type=float)
    p.add_argument("--blood-type", dest="blood_type", required=True, type=str.upper, choices=BLOOD_TYPES)
    p.add_argument("--radius-km", dest="radius_km", type=float, default=None)
    p.add_argument("--limit", type=int, default=None)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the BloodMatch CLI."""
    parser = argparse.ArgumentParser(prog="bloodmatch")
    parser.add_argument("--directory", default=None, help="Directory JSON file (defaults to settings).")
    parser.add_argument("--log-level", dest="log_level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    nb = sub.add_parser("nearby-bloodbanks", help="Nearest blood banks for an emergency request.")
    _add_location_args(nb)
    nb.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    nb.set_defaults(func=_cmd_nearby_blood_banks)

    inc = sub.add_parser("incoming-requests", help="Urgent requests near a critical-ready donor.")
    inc.add_argument("--donor-id", dest="donor_id", required=True)
    inc.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    inc.set_defaults(func=_cmd_incoming_requests)

    cd = sub.add_parser("critical-donors", help="Critical-ready donors near a location.")
    _add_location_args(cd)
    cd.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    cd.set_defaults(func=_cmd_critical_donors)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m bloodmatch.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except (InvalidQuery, NotFound) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
