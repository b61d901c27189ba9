"""Human-readable run summary and the detailed results file."""

from __future__ import annotations

import json
import logging

from scripts.user_import.models import RunStats

logger = logging.getLogger("user_import.report")


def render_summary(stats: RunStats) -> str:
    totals = stats.totals()
    failed_files = [f for f in stats.files if f.summary["failed"] > 0]
    total_users = totals["inserted"] + totals["updated"] + totals["failed"]

    lines = [
        "",
        f"Time taken: \t\t\t\t {stats.duration_seconds} seconds",
        "",
        "Users Imported",
        "",
        f"\tUsers inserted: \t\t {totals['inserted']}",
        f"\tUsers updated: \t\t\t {totals['updated']}",
        f"\tUsers failed: \t\t\t {totals['failed']}",
        "",
        f"\tTotal Users: \t\t\t {total_users}",
        "",
        "Files Processed",
        "",
        f"\tFiles processed without errors:  {len(stats.files) - len(failed_files)}",
        f"\tFiles processed with errors: \t {len(failed_files)}",
        "",
        f"\tTotal Number of Files: \t\t {len(stats.files)}",
    ]
    if failed_files:
        lines += ["", "Files with errors:"]
        lines += [f"\t{f.name} [{len(f.errors)} errors]" for f in failed_files]
    lines.append("")
    return "\n".join(lines)


def write_results(path: str, stats: RunStats) -> None:
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(stats.to_dict(), fh, indent=2, default=str)
    except OSError as exc:
        logger.error("Unable to write results file %s: %s", path, exc)
        raise
    logger.debug("Detailed results saved to %s", path)
