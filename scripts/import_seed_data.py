#!/usr/bin/env python3
"""
Import seed data into local database for testing.

Usage:
    python scripts/import_seed_data.py

Reads from data/seed_data.json, checks each document against its model and
imports it. Requires DATABASE_URL to be set in .env file.
"""

import json
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from pydantic import ValidationError

from database import add_document, init_db
from main import COLLECTION_MODELS


def import_data():
    """Import seed data from JSON file."""
    seed_file = Path(__file__).parent.parent / "data" / "seed_data.json"

    if not seed_file.exists():
        print(f"Error: {seed_file} not found")
        print("Run export_prod_data.py first to create seed data")
        sys.exit(1)

    with open(seed_file) as f:
        data = json.load(f)

    print(f"Loading seed data from {seed_file}")
    for collection in COLLECTION_MODELS:
        print(f"  {collection.capitalize()}: {len(data.get(collection, []))}")

    print("\nInitializing database schema...")
    init_db()

    for collection, model in COLLECTION_MODELS.items():
        imported = 0
        for doc in data.get(collection, []):
            try:
                item = model(**doc)
            except ValidationError as exc:
                print(f"Skipping {collection}/{doc.get('id')}: {exc.error_count()} invalid field(s)")
                continue
            add_document(collection, item.model_dump(mode="json"))
            imported += 1
        print(f"Imported {imported} {collection}")

    print("\nSeed data imported successfully!")


if __name__ == "__main__":
    import_data()
