"""Seed helper that loads the sample course catalog into MongoDB."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from coursereg.src.config import ConfigError, get_db_name, get_mongo_uri
from coursereg.src.utils.payloads import validate_course_payload

ROOT_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = ROOT_DIR / "coursereg" / ".env"
SEED_PATH = Path(__file__).resolve().parent / "seed.json"


def load_env() -> None:
    if ENV_PATH.exists():
        load_dotenv(ENV_PATH)


def read_seed_file() -> Dict[str, List[Dict[str, Any]]]:
    with SEED_PATH.open("r", encoding="utf-8") as seed_file:
        data = json.load(seed_file)
    if not isinstance(data, dict) or not isinstance(data.get("courses"), list):
        raise ValueError("Seed file must contain a 'courses' list")
    return data


def clean_courses(raw_courses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    courses = []
    for index, raw in enumerate(raw_courses):
        cleaned, errors = validate_course_payload(raw, require_all=True)
        if errors:
            raise ValueError(f"Seed course #{index} is invalid: {errors}")
        cleaned["created_at"] = datetime.now(timezone.utc)
        courses.append(cleaned)
    return courses


def main() -> None:
    load_env()
    try:
        uri = get_mongo_uri()
        db_name = get_db_name()
    except ConfigError as exc:  # pragma: no cover - simple CLI utility
        print(f"Configuration error: {exc}")
        raise SystemExit(1)

    client = MongoClient(uri, serverSelectionTimeoutMS=5000)
    database = client[db_name]

    try:
        courses = clean_courses(read_seed_file()["courses"])
        collection = database["courses"]
        collection.delete_many({})
        if courses:
            collection.insert_many(courses)
        print(f"Loaded {len(courses)} course(s) into 'courses' collection")
        print(f"Seeding complete for database '{db_name}'.")
    except PyMongoError as exc:  # pragma: no cover - requires Mongo connection
        print(f"MongoDB error: {exc}")
        raise SystemExit(1)
    finally:
        client.close()


if __name__ == "__main__":
    main()
