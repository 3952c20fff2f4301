#!/usr/bin/env python3
"""Publish the score database as static JSON for the public leaderboard page.

Exports results/scores.db (leaderboard, match list, one event file per
match) and stores every file under ``data/`` in an S3-compatible bucket.

Environment:
    ADVENTURE_S3_KEY_ID, ADVENTURE_S3_APPLICATION_KEY  credentials
    ADVENTURE_S3_BUCKET_NAME                           target bucket
    ADVENTURE_S3_HOST                                  endpoint hostname
"""

import os
import sys
import tempfile
from pathlib import Path

from adventure_race.__main__ import DB_PATH
from adventure_race.export import generate_all, upload_to_s3

ENV_PREFIX = "ADVENTURE_S3_"
KEY_PREFIX = "data/"


def _env() -> dict[str, str]:
    names = ("KEY_ID", "APPLICATION_KEY", "BUCKET_NAME", "HOST")
    missing = [ENV_PREFIX + n for n in names if not os.environ.get(ENV_PREFIX + n)]
    if missing:
        sys.exit(f"Missing env vars: {', '.join(missing)}")
    return {n: os.environ[ENV_PREFIX + n] for n in names}


def main() -> None:
    env = _env()
    if not DB_PATH.exists():
        sys.exit(f"No database at {DB_PATH}. Play some matches first.")

    with tempfile.TemporaryDirectory() as tmp:
        out_dir = Path(tmp)
        files = {
            KEY_PREFIX + path.relative_to(out_dir).as_posix(): path.read_bytes()
            for path in generate_all(DB_PATH, out_dir)
        }
        upload_to_s3(
            files=files,
            bucket_name=env["BUCKET_NAME"],
            endpoint_url=f"https://{env['HOST']}",
            key_id=env["KEY_ID"],
            app_key=env["APPLICATION_KEY"],
        )
    print(f"Published {len(files)} files to {env['BUCKET_NAME']}")


if __name__ == "__main__":
    main()
