#!/usr/bin/env python3
"""Run the ARQ worker for story text and page illustration jobs.

Usage:
    python cli/run_worker.py            # run until stopped
    python cli/run_worker.py --burst    # drain the queue, then exit
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from arq import run_worker

from storybook.worker import WorkerSettings


def main():
    parser = argparse.ArgumentParser(description="Run the storybook ARQ worker")
    parser.add_argument(
        "--burst",
        action="store_true",
        help="Process queued jobs and exit instead of waiting for new ones",
    )
    args = parser.parse_args()

    run_worker(WorkerSettings, burst=args.burst)


if __name__ == "__main__":
    main()
