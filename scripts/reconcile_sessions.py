"""Mark sessions left open on previous days as incomplete.

Meant to run from cron shortly after midnight:

    python scripts/reconcile_sessions.py [--before YYYY-MM-DD]
"""
from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.shiftdesk.shiftdesk.attendance.model import AttendanceSettings
from src.shiftdesk.shiftdesk.common.datetime_utils import parse_iso_date
from src.shiftdesk.shiftdesk.container import build_container
from src.shiftdesk.shiftdesk.main import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--before", help="close sessions whose work date is before this day (default: today)")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        settings=AttendanceSettings.from_settings(settings),
    )
    before = parse_iso_date(args.before) if args.before else None
    closed = container.attendance_service.reconcile_incomplete(before)
    print(f"OK: {len(closed)} session(s) marked incomplete")


if __name__ == "__main__":
    main()
