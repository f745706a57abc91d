"""
Schedflow
=========

Runs the sample project cascade from the command line.
"""

import argparse
import sys
from datetime import date

from schedflow.examples.simple_project import create_sample_project
from schedflow.utils.logger import configure_logging


def main():
    parser = argparse.ArgumentParser(
        description="Dependency-aware task and deliverable scheduling"
    )
    parser.add_argument(
        "--example", action="store_true", help="Run the example project"
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Default start date for unanchored tasks (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--log-level", type=str, default=None, help="Logging level (e.g. DEBUG)"
    )

    args = parser.parse_args()
    configure_logging("schedflow", args.log_level)

    if args.example:
        print("Running example project...")
        report = create_sample_project(args.today or date.today())
        return 0 if report.ok else 1
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
