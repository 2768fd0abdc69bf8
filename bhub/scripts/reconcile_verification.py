#!/usr/bin/env python3
"""Verification mirror reconciliation.

Compares every donor/school record with the verification mirror on its
profile and reports drift. With --repair, rewrites drifted profiles from
the role record (the source of truth).

Exit codes:
    0: no drift (or all drift repaired with --repair)
    1: drift detected and not repaired
    2: ERROR (env/connection failure)

Environment variables:
    DATABASE_URL: Required outside local development.
    JSON_OUTPUT: Optional. Set to "1" to print the report as JSON.
"""

import argparse
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "apps" / "api"))

from sqlalchemy.exc import SQLAlchemyError  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from bhub_api.approvals.reconcile import reconcile_verification_mirrors  # noqa: E402
from bhub_api.config.env import get_database_url  # noqa: E402
from bhub_api.db.engine import build_engine, build_sessionmaker  # noqa: E402
from bhub_api.utils import configure_json_logging  # noqa: E402


def open_session() -> Session:
    """Open a session against DATABASE_URL."""
    return build_sessionmaker(build_engine(get_database_url()))()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--repair", action="store_true", help="rewrite drifted profiles")
    args = parser.parse_args(argv)

    configure_json_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        with open_session() as db:
            report = reconcile_verification_mirrors(db, repair=args.repair)
    except (RuntimeError, ValueError, SQLAlchemyError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if os.getenv("JSON_OUTPUT") == "1":
        print(json.dumps(
            {
                "checked": report.checked,
                "repaired": report.repaired,
                "drifted": [asdict(d) for d in report.drifted],
            },
            indent=2,
        ))
    else:
        print(f"checked={report.checked} drifted={len(report.drifted)} repaired={report.repaired}")
        for drift in report.drifted:
            state = "missing profile" if drift.missing_profile else f"profile={drift.profile_status}"
            print(f"  {drift.entity} {drift.user_id}: expected={drift.expected_status} {state}")

    # Missing profiles cannot be rebuilt from the role record
    unresolved = [d for d in report.drifted if d.missing_profile or not args.repair]
    return 1 if unresolved else 0


if __name__ == "__main__":
    sys.exit(main())
