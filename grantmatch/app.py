import argparse
import json
import sys
import time
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

from . import ENGINE_VERSION, __version__
from .catalog import CatalogLoader
from .config import Settings, load_env
from .engine import MatchingEngine
from .errors import CatalogUnavailable, InvalidOptions, InvalidProfile, NoSnapshotLoaded
from .health import catalog_coverage, health
from .logger import get_logger
from .models import GrantRecord, MatchResponse, MatchResult
from .profile import build_profile
from .retry import RetryError, exponential_backoff
from .schema import validate_grant
from .sources import DatabaseCatalogSource, HttpCatalogSource, JsonFileCatalogSource

EXIT_INVALID = 2
EXIT_UNAVAILABLE = 3


def _iso(value: Optional[Any]) -> Optional[str]:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def serialize_grant(grant: GrantRecord) -> Dict[str, Any]:
    return {
        "id": grant.id,
        "sourceId": grant.source_id,
        "title": grant.title,
        "agency": grant.agency,
        "summary": grant.summary,
        "url": grant.url,
        "status": grant.status.value,
        "states": sorted(grant.states),
        "goals": sorted(g.value for g in grant.goals),
        "fundingMin": grant.funding_min,
        "fundingMax": grant.funding_max,
        "deadline": _iso(grant.deadline),
        "deadlineType": grant.deadline_type.value,
        "requirements": list(grant.requirements),
    }


def serialize_result(result: MatchResult) -> Dict[str, Any]:
    return {
        "grantId": result.grant_id,
        "score": result.score,
        "dimensions": list(result.dimensions),
        "matchReasons": list(result.reasons),
        "warnings": list(result.warnings),
        "grant": serialize_grant(result.grant),
    }


def serialize_response(response: MatchResponse, duration_ms: float) -> Dict[str, Any]:
    """Wire format for a match response plus request metadata."""
    return {
        "success": True,
        "grants": [serialize_result(r) for r in response.results],
        "total": response.total_matches,
        "options": {"limit": response.options.limit, "minScore": response.options.min_score},
        "filters": {
            "appliedFilters": list(response.filters.applied_filters),
            "grantsBeforeFilter": response.filters.grants_before_filter,
            "grantsAfterFilter": response.filters.grants_after_filter,
            "excludedByReason": dict(response.filters.excluded_by_reason),
        },
        "catalogLoadedAt": _iso(response.snapshot_loaded_at),
        "meta": {"durationMs": round(duration_ms, 2), "engineVersion": ENGINE_VERSION},
    }


def build_source(args: argparse.Namespace, settings: Settings):
    url = getattr(args, "catalog_url", None) or settings.catalog_url
    if url:
        return HttpCatalogSource(url, timeout=settings.http_timeout)
    catalog_file = getattr(args, "catalog_file", None) or settings.catalog_file
    if catalog_file:
        return JsonFileCatalogSource(Path(catalog_file))
    return DatabaseCatalogSource(Path(getattr(args, "db", None) or settings.db_path))


def load_catalog(loader: CatalogLoader, settings: Settings):
    """Load the catalog, retrying transient store failures."""
    logger = get_logger()

    def on_retry(attempt, error, delay):
        logger.warning(f"Catalog load attempt {attempt} failed; retrying in {delay:.1f}s", error=str(error))

    retrying_load = exponential_backoff(
        max_retries=settings.load_retries,
        base_delay=settings.retry_base_delay,
        exceptions=(CatalogUnavailable,),
        should_retry=lambda e: getattr(e, "transient", True),
        on_retry=on_retry,
    )(loader.load)
    return retrying_load()


def _load_profile(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise SystemExit(f"Profile file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError:
        raise SystemExit(f"Profile file is not valid JSON: {path}")
    if not isinstance(data, dict):
        raise SystemExit(f"Profile file must contain a JSON object: {path}")
    return data


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _unavailable(message: str) -> None:
    _print_json({"success": False, "message": "Matching unavailable", "error": message})
    raise SystemExit(EXIT_UNAVAILABLE)


def _prepare(args: argparse.Namespace):
    settings = Settings.from_env()
    loader = CatalogLoader(build_source(args, settings))
    try:
        load_catalog(loader, settings)
    except (CatalogUnavailable, RetryError) as e:
        _unavailable(str(e))
    return settings, loader


def cmd_load(args: argparse.Namespace) -> None:
    _, loader = _prepare(args)
    snapshot = loader.current()
    print(f"Loaded {snapshot.count} grants ({snapshot.skipped} skipped) from {loader.source.describe()}")
    print(f"Loaded at: {snapshot.loaded_at.isoformat()}")


def cmd_match(args: argparse.Namespace) -> None:
    started = time.perf_counter()
    record = _load_profile(Path(args.profile))
    try:
        profile = build_profile(record)
    except InvalidProfile as e:
        _print_json({"success": False, "message": "Invalid profile", "errors": e.errors})
        raise SystemExit(EXIT_INVALID)

    settings, loader = _prepare(args)
    engine = MatchingEngine(loader, settings=settings)
    try:
        response = engine.match(profile, limit=args.limit, min_score=args.min_score)
    except InvalidOptions as e:
        _print_json({"success": False, "message": "Invalid options", "error": str(e)})
        raise SystemExit(EXIT_INVALID)
    except NoSnapshotLoaded as e:
        _unavailable(str(e))

    payload = serialize_response(response, (time.perf_counter() - started) * 1000)
    if response.is_empty:
        payload["message"] = "No matches found"
    _print_json(payload)


def cmd_detail(args: argparse.Namespace) -> None:
    record = _load_profile(Path(args.profile))
    try:
        profile = build_profile(record)
    except InvalidProfile as e:
        _print_json({"success": False, "message": "Invalid profile", "errors": e.errors})
        raise SystemExit(EXIT_INVALID)

    settings, loader = _prepare(args)
    detail = MatchingEngine(loader, settings=settings).grant_detail(args.grant_id, profile)
    if detail is None:
        _print_json({"success": False, "message": f"Grant not found: {args.grant_id}"})
        raise SystemExit(1)
    _print_json({"success": True, "eligible": detail.eligible, "match": serialize_result(detail.match)})


def cmd_health(args: argparse.Namespace) -> None:
    settings = Settings.from_env()
    loader = CatalogLoader(build_source(args, settings))
    try:
        load_catalog(loader, settings)
        status = "healthy"
    except (CatalogUnavailable, RetryError) as e:
        get_logger().error("Health check could not load catalog", error=str(e))
        status = "unavailable"
    payload = {"status": status, "version": ENGINE_VERSION, **health(loader).as_dict()}
    if loader.is_loaded:
        payload["coverage"] = catalog_coverage(loader.current())
    _print_json(payload)
    if status != "healthy":
        raise SystemExit(EXIT_UNAVAILABLE)


def cmd_validate(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    try:
        entries = JsonFileCatalogSource(input_path).fetch()
    except CatalogUnavailable as e:
        raise SystemExit(str(e))

    invalid = 0
    for index, entry in enumerate(entries):
        errors = validate_grant(entry)
        if errors:
            invalid += 1
            grant_id = entry.get("id") if isinstance(entry, dict) else None
            print(f"Invalid entry #{index} ({grant_id}):")
            for e in errors:
                print(f" - {e}")
    print(f"Checked {len(entries)} entries: {len(entries) - invalid} valid, {invalid} invalid")
    if invalid:
        raise SystemExit(EXIT_INVALID)


def _add_source_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--db", help="SQLite catalog path (default: GRANTMATCH_DB or data/grants.db)")
    sub.add_argument("--catalog-file", help="Load the catalog from a JSON export instead of the database")
    sub.add_argument("--catalog-url", help="Load the catalog from an HTTP JSON endpoint")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grantmatch", description="Deterministic farm grant matching")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    ld = subparsers.add_parser("load", help="Load the grant catalog and report its size")
    _add_source_args(ld)
    ld.set_defaults(func=cmd_load)

    mt = subparsers.add_parser("match", help="Rank catalog grants for a farm profile JSON")
    mt.add_argument("--profile", required=True, help="Path to profile JSON (row fields plus 'attributes')")
    mt.add_argument("--limit", type=int, help="Maximum results (default: GRANTMATCH_DEFAULT_LIMIT)")
    mt.add_argument("--min-score", type=int, help="Minimum score 0-100 (default: GRANTMATCH_DEFAULT_MIN_SCORE)")
    _add_source_args(mt)
    mt.set_defaults(func=cmd_match)

    dt = subparsers.add_parser("detail", help="Score one grant for a farm profile")
    dt.add_argument("--grant-id", required=True, help="Grant identifier")
    dt.add_argument("--profile", required=True, help="Path to profile JSON")
    _add_source_args(dt)
    dt.set_defaults(func=cmd_detail)

    hl = subparsers.add_parser("health", help="Report catalog size and last load time")
    _add_source_args(hl)
    hl.set_defaults(func=cmd_health)

    val = subparsers.add_parser("validate", help="Validate a catalog JSON export")
    val.add_argument("--input", required=True, help="Path to catalog JSON")
    val.set_defaults(func=cmd_validate)

    return parser


def main(argv=None):
    # Load .env if present (GRANTMATCH_DB, GRANTMATCH_CATALOG_URL, etc.)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help(sys.stderr)


if __name__ == "__main__":
    main()
