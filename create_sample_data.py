#!/usr/bin/env python3
"""Script to (re)create the database and seed the sample sales data."""

import argparse
import logging

from app.core.database import init_db


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--recreate", action="store_true", help="drop all tables before seeding")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    init_db(force_recreate=args.recreate)


if __name__ == "__main__":
    main()
