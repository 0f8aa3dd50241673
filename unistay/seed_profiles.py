"""
Bulk-load roommate profiles from a JSON file into MongoDB.

    python -m unistay.seed_profiles profiles.json

The file holds a list of profile objects using the API field names, each with
an "id" (the owning user's id). Invalid entries are reported and skipped.
"""
import argparse
import json
import logging
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from dotenv import load_dotenv
from pymongo.errors import BulkWriteError, PyMongoError

from unistay.errors import ProfileValidationError
from unistay.models.profile import profile_from_document

logger = logging.getLogger("unistay.seed_profiles")


def load_profiles(file_name: str) -> List[Dict]:
    """Loads profile data from the specified JSON file."""
    try:
        with open(file_name, "r", encoding="utf-8") as f:
            profiles = json.load(f)
    except FileNotFoundError:
        logger.error("The file %r was not found", file_name)
        return []
    except json.JSONDecodeError as e:
        logger.error("The file %r contains invalid JSON data: %s", file_name, e)
        return []
    if not isinstance(profiles, list):
        logger.error("Expected a list of profiles in %r", file_name)
        return []
    logger.info("Loaded %d profiles from %s", len(profiles), file_name)
    return profiles


def create_profile_documents(profiles: List[Dict]) -> Tuple[List[Dict], List[str]]:
    """Validate raw entries and turn them into profile documents."""
    documents = []
    errors = []
    now = datetime.now(timezone.utc)
    for index, raw in enumerate(profiles):
        try:
            if isinstance(raw, dict):
                raw = {"created_at": now, **raw}
            profile = profile_from_document(raw)
        except ProfileValidationError as e:
            errors.append(f"entry {index}: {e}")
            continue
        documents.append(profile.model_dump(by_alias=True))
    return documents, errors


def insert_documents(collection, documents: List[Dict]) -> int:
    if not documents:
        return 0
    try:
        result = collection.insert_many(documents, ordered=False)
        return len(result.inserted_ids)
    except BulkWriteError as e:
        # Duplicates of already seeded ids land here; the rest went in.
        logger.warning("%d documents were not inserted", len(e.details.get("writeErrors", [])))
        return e.details.get("nInserted", 0)


def main(argv=None):
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Seed roommate profiles into MongoDB")
    parser.add_argument("file", help="JSON file with a list of profiles")
    args = parser.parse_args(argv)

    profiles = load_profiles(args.file)
    if not profiles:
        return 1

    documents, errors = create_profile_documents(profiles)
    for error in errors:
        logger.warning("Skipping %s", error)

    # Imported here so the env file is loaded before the client is created
    from unistay.db.mongo import check_connection, client, ensure_indexes, get_profiles_collection

    if not check_connection():
        logger.error("Cannot proceed with insertion due to MongoDB connection failure")
        return 1

    try:
        ensure_indexes()
        inserted = insert_documents(get_profiles_collection(), documents)
    except PyMongoError as e:
        logger.error("Error inserting profiles: %s", e)
        return 1
    finally:
        client.close()

    logger.info("Inserted %d profiles, skipped %d invalid entries", inserted, len(errors))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
