#!/usr/bin/env python3
"""
Grades Report Generator for CEITI

Fetches a student's record page (or reads the cached copy), parses it and
writes a YAML report with subjects, averages, absences and exams.

Usage:
    ceiti-grades IDNP [--config PATH] [--cache-file PATH] [--output PATH] [--offline]
    ceiti-grades --html-file PATH [--output PATH]
"""

import argparse
import asyncio
from datetime import datetime, timezone
import logging
from pathlib import Path
import sys
from typing import Any

import yaml

from .calculations import format_semester_label, is_stale, semester_averages
from .client import PortalClient
from .config import is_valid_identity, load_config
from .const import (
    ACTIVE_IDENTITY_KEY,
    CONF_BASE_URL,
    CONF_CACHE_FILE,
    CONF_INFO_PATH,
    CONF_LOGIN_PATH,
    CONF_RETRY_DELAYS,
    CONF_STALE_DAYS,
    CONF_STUDENT_ID,
)
from .coordinator import GradesCoordinator, mask_identity
from .events import RefreshEnded
from .exceptions import ConfigError
from .models import CacheEntry, StudentGrades
from .parser import parse_student_grades_data
from .storage import JsonFileStore

_LOGGER = logging.getLogger(__name__)


def _format_timestamp(timestamp: int | None) -> str | None:
    """Render an epoch-ms timestamp as ISO 8601 in UTC."""
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc).isoformat()


def build_report(
    grades: StudentGrades,
    cached: CacheEntry | None = None,
    now: int | None = None,
    stale_days: int = 7,
) -> dict[str, Any]:
    """Turn a parsed record into a plain dict ready for YAML output."""
    info = grades.student_info
    timestamp = cached.timestamp if cached else None

    semesters = []
    for semester in grades.current_grades:
        semester_data = {
            "semester": semester.semester,
            "label": format_semester_label(semester.semester),
            "subjects": [
                {
                    "name": subject.name,
                    "grades": subject.grades,
                    "average": subject.displayed_average,
                }
                for subject in semester.subjects
            ],
        }
        if semester.absences is not None:
            semester_data["absences"] = {
                "total": semester.absences.total,
                "sick": semester.absences.sick,
                "excused": semester.absences.excused,
                "unexcused": semester.absences.unexcused,
            }
        semesters.append(semester_data)

    return {
        "student": {
            "name": f"{info.name} {info.first_name}".strip(),
            "patronymic": info.patronymic,
            "study_year": info.study_year,
            "group": info.group,
            "specialization": info.specialization,
        },
        "last_updated": _format_timestamp(timestamp),
        "stale": is_stale(timestamp, now, stale_days) if now is not None else False,
        "demo_data": grades.is_mock,
        "current_semester": grades.current_semester,
        "semester_averages": semester_averages(grades),
        "semesters": semesters,
        "exams": [
            {
                "name": exam.name,
                "type": exam.type,
                "grade": exam.grade,
                "semester": exam.semester,
                "upcoming": exam.upcoming,
            }
            for exam in grades.exams
        ],
        "annual_grades": [
            {key: value for key, value in vars(row).items() if value is not None}
            for row in grades.annual_grades
        ],
    }


def write_report(report: dict[str, Any], output: Path | None) -> None:
    """Dump the report as YAML to a file, or to stdout when output is None."""
    options = {
        "default_flow_style": False,
        "sort_keys": False,
        "allow_unicode": True,
        "width": 1000,
    }
    if output is None:
        yaml.dump(report, sys.stdout, **options)
        return

    with open(output, "w", encoding="utf-8") as f:
        yaml.dump(report, f, **options)


async def fetch_report(identity: str, config: dict[str, Any], offline: bool = False) -> dict[str, Any] | None:
    """Refresh the cached page for identity and build its report."""
    storage = JsonFileStore(config[CONF_CACHE_FILE])
    await storage.set_item(ACTIVE_IDENTITY_KEY, identity)

    client = PortalClient(
        base_url=config[CONF_BASE_URL],
        login_path=config[CONF_LOGIN_PATH],
        info_path=config[CONF_INFO_PATH],
    )
    coordinator = GradesCoordinator(
        storage,
        client,
        retry_delays=config[CONF_RETRY_DELAYS],
        stale_days=config[CONF_STALE_DAYS],
    )

    def on_refresh_ended(event: RefreshEnded) -> None:
        if event.error:
            _LOGGER.warning("Refresh failed, falling back to cached data")
        elif event.updated:
            _LOGGER.info("Fetched a fresh copy in %d ms", event.duration_ms)

    unsubscribe = coordinator.events.subscribe(RefreshEnded, on_refresh_ended)
    try:
        if not offline:
            await coordinator.silent_refresh(identity)
            await coordinator.wait_for_refresh(identity)

        cached = await coordinator.get_cached(identity)
        if cached is None:
            return None

        return build_report(
            parse_student_grades_data(cached.html),
            cached,
            now=int(datetime.now(timezone.utc).timestamp() * 1000),
            stale_days=config[CONF_STALE_DAYS],
        )
    finally:
        unsubscribe()
        await coordinator.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(
        description="Fetch a CEITI student record and write a YAML grades report"
    )
    parser.add_argument(
        "idnp",
        nargs="?",
        help="Student IDNP (13 digits); defaults to student_id from the config file",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a YAML config file",
        default=None,
    )
    parser.add_argument(
        "--cache-file",
        type=Path,
        help="Path to the JSON cache file (overrides the config file)",
        default=None,
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Output YAML file path (default: stdout)",
        default=None,
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not contact the portal, report on the cached copy only",
    )
    parser.add_argument(
        "--html-file",
        type=Path,
        help="Parse a saved record page instead of using the portal or cache",
        default=None,
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as err:
        _LOGGER.error("%s", err)
        return 1

    if args.cache_file is not None:
        config[CONF_CACHE_FILE] = str(args.cache_file)

    if args.html_file is not None:
        if not args.html_file.exists():
            _LOGGER.error("HTML file not found: %s", args.html_file)
            return 1
        html = args.html_file.read_text(encoding="utf-8")
        report = build_report(parse_student_grades_data(html))
    else:
        identity = args.idnp or config.get(CONF_STUDENT_ID)
        if not is_valid_identity(identity):
            _LOGGER.error("An IDNP of exactly 13 digits is required")
            return 1

        _LOGGER.info("Loading grades for %s", mask_identity(identity))
        report = asyncio.run(fetch_report(identity, config, offline=args.offline))
        if report is None:
            _LOGGER.error("No cached data for %s and no fresh copy could be fetched", mask_identity(identity))
            return 1

    try:
        write_report(report, args.output)
    except OSError as err:
        _LOGGER.error("Failed to write output: %s", err)
        return 1

    if args.output is not None:
        _LOGGER.info("Report written to %s", args.output.absolute())

        # Print summary
        print("\n" + "=" * 60)
        print("Grades Report Summary")
        print("=" * 60)
        print(f"Student: {report['student']['name']}")
        print(f"Output file: {args.output}")
        print(f"Semesters: {len(report['semesters'])}")
        print(f"Exams: {len(report['exams'])}")
        print(f"Last update: {report['last_updated'] or 'Unknown'}")
        print("=" * 60 + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
