from __future__ import annotations

import argparse
import logging
import sys

from config import FUNCTIONS_BASE_URL, LOG_LEVEL
from faith_finder.errors import (
    EmptyDirectory,
    FaithFinderError,
    InvalidInput,
    ReconciliationError,
)
from faith_finder.models import MatchResults, PreferenceQuery
from faith_finder.models.match import ChurchMatch
from faith_finder.models.options import CHURCH_SIZES, LOCATION_OPTIONS, label_for
from faith_finder.services.admin_jobs import JOB_DESCRIPTIONS, AdminJobClient, JobName
from faith_finder.services.directory_service import default_directory
from faith_finder.services.match_client import MatchClient, MatchSession
from faith_finder.services.settings_store import SettingsStore


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Find a church community that fits your life, with explainable recommendations."
    )
    parser.add_argument("--base-url", default=FUNCTIONS_BASE_URL, help="Matching service base URL")
    sub = parser.add_subparsers(dest="command", required=True)

    match = sub.add_parser("match", help="Get a best match and two runner-ups")
    match.add_argument("--size", choices=[o.value for o in CHURCH_SIZES], help="Church size (required unless saved)")
    match.add_argument("--location", help="Town or area, e.g. 'State College' (required unless saved)")
    match.add_argument("--denomination", help="Denomination, or leave out for no preference")
    match.add_argument("--worship-style", help="traditional, contemporary, blended, charismatic or quiet")
    match.add_argument("--distance", help="Maximum distance in miles")
    match.add_argument("--priority", action="append", default=[], help="Priority tag; repeat for more")
    match.add_argument("--notes", default="", help="Anything else we should know")
    match.add_argument("--save", action="store_true", help="Remember location, size and denomination")

    churches = sub.add_parser("churches", help="Browse the church directory")
    churches.add_argument("--location", help="Only churches in this location")

    settings = sub.add_parser("settings", help="Show or change saved defaults")
    settings.add_argument("action", choices=["show", "set", "reset"])
    settings.add_argument("--location")
    settings.add_argument("--size")
    settings.add_argument("--denomination")
    settings.add_argument("--theme", choices=["system", "light", "dark"])

    job = sub.add_parser("job", help="Trigger an admin maintenance job")
    job.add_argument("name", choices=[j.value for j in JobName])
    job.add_argument("--token", help="Admin bearer token from /api/auth/login")
    job.add_argument("--admin-key", help="Shared admin import key, if the deployment requires one")

    return parser.parse_args(argv)


def format_match(match: ChurchMatch, *, best: bool = False) -> str:
    header = f"{'⭐ Best match: ' if best else '• '}{match.name}"
    lines = [header, f"   {match.denomination or 'Denomination unknown'} · {match.size or 'size unknown'} · {match.location}"]
    if match.address:
        lines.append(f"   📍 {match.address}")
    if match.phone:
        lines.append(f"   📞 {match.phone}")
    if match.website:
        lines.append(f"   🌐 {match.website}")
    if match.description:
        lines.append(f"   {match.description}")
    if match.latitude is None:
        lines.append("   Map unavailable for this church")
    if match.reason:
        lines.append("")
        lines.extend(f"   {line}" for line in match.reason.splitlines())
    return "\n".join(lines)


def print_results(results: MatchResults) -> None:
    print(format_match(results.best_match, best=True))
    if results.runner_ups:
        print("\nAlso worth a visit:")
        for match in results.runner_ups:
            print(format_match(match))
            print()


def print_failure(error: FaithFinderError) -> None:
    if isinstance(error, ReconciliationError):
        message = "Something went wrong while preparing your matches."
    else:
        message = error.message
    print(f"⚠️  {message}", file=sys.stderr)
    if isinstance(error, EmptyDirectory):
        print("   Try a broader location, such as 'Centre County'.", file=sys.stderr)
    elif not isinstance(error, InvalidInput):
        print("   Your answers are kept; run the same command again to retry.", file=sys.stderr)
    print("   Or browse churches yourself: faith-finder churches", file=sys.stderr)


def run_match(args: argparse.Namespace) -> int:
    store = SettingsStore()
    settings = store.load()
    preferences = PreferenceQuery.from_form(
        {
            "size": args.size,
            "location": args.location,
            "denomination": args.denomination,
            "worshipStyle": args.worship_style,
            "distance": args.distance,
            "priorities": args.priority,
            "additionalInfo": args.notes,
        },
        defaults=settings,
    )
    if args.save:
        store.update(
            default_location=preferences.location,
            default_size=preferences.size,
            default_denomination=preferences.denomination,
        )

    print(f"🔍 Looking for {label_for(CHURCH_SIZES, preferences.size).lower()} churches "
          f"in {label_for(LOCATION_OPTIONS, preferences.location)}...")
    session = MatchSession(MatchClient(default_directory(), base_url=args.base_url))
    print_results(session.submit(preferences))
    return 0


def run_churches(args: argparse.Namespace) -> int:
    churches = default_directory().list(location=args.location)
    if not churches:
        print("No churches found.")
        return 0
    for church in churches:
        print(f"{church.name} — {church.denomination or 'Denomination unknown'} · "
              f"{church.size or 'size unknown'} · {church.location}")
    return 0


def run_settings(args: argparse.Namespace) -> int:
    store = SettingsStore()
    if args.action == "reset":
        settings = store.reset()
    elif args.action == "set":
        patch = {
            key: value
            for key, value in (
                ("default_location", args.location),
                ("default_size", args.size),
                ("default_denomination", args.denomination),
                ("theme", args.theme),
            )
            if value is not None
        }
        settings = store.update(**patch)
    else:
        settings = store.load()
    for key, value in settings.to_dict().items():
        print(f"{key}: {value or '(not set)'}")
    return 0


def run_job(args: argparse.Namespace) -> int:
    job = JobName(args.name)
    print(f"⏳ {JOB_DESCRIPTIONS[job]}")
    client = AdminJobClient(base_url=args.base_url, access_token=args.token, admin_key=args.admin_key)
    result = client.run(job)
    if not result.ok:
        print(f"❌ Job failed: {result.error}", file=sys.stderr)
        return 1
    print(f"✅ Completed: {result.payload}")
    return 0


COMMANDS = {
    "match": run_match,
    "churches": run_churches,
    "settings": run_settings,
    "job": run_job,
}


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=LOG_LEVEL if LOG_LEVEL != "INFO" else "WARNING")
    args = parse_args(argv)
    try:
        return COMMANDS[args.command](args)
    except FaithFinderError as e:
        print_failure(e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
