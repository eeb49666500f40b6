#!/usr/bin/env python3
"""
Draft Video Seeding Script for Tubely.

Inserts a draft video record (no uploaded media yet) for a user and prints a
bearer token for that user, so the upload endpoints can be exercised locally.

Usage:
    python scripts/seed_video.py --user-id <uuid> [--title TITLE] [--description TEXT]

Environment Variables:
    MONGODB_URI         MongoDB connection URI (default: mongodb://localhost:27017)
    MONGODB_DB_NAME     Database name (default: tubely)
    SECRET_KEY          Key used to sign the printed token

Example:
    $ python scripts/seed_video.py --title "Trail run"
    Video ID: 0f8fad5b-d9cb-469f-a165-70867728950e
    User ID:  7c9e6679-7425-40de-944b-e07fc1f90ae7
    Token:    eyJhbGciOiJIUzI1NiIs...

    $ curl -H "Authorization: Bearer $TOKEN" -F "video=@clip.mp4;type=video/mp4" \\
        http://localhost:8091/api/v1/videos/$VIDEO_ID/upload
"""

import argparse
import sys
import uuid

from datetime import UTC, datetime
from typing import Any

from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.config import get_settings
from app.core.auth import create_local_jwt
from app.core.database import VIDEOS_COLLECTION
from app.models.video import Video


CONNECTION_TIMEOUT_MS = 5000


def build_video_document(user_id: str, title: str, description: str | None) -> dict[str, Any]:
    """Build the MongoDB document for a new draft video."""
    now = datetime.now(UTC)
    video = Video(
        _id=str(uuid.uuid4()),
        user_id=user_id,
        title=title,
        description=description,
        created_at=now,
        updated_at=now,
    )
    return video.to_document()


def insert_video(collection: Collection, document: dict[str, Any]) -> str:
    """Insert a draft video document and return its id."""
    result = collection.insert_one(document)
    return str(result.inserted_id)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Insert a draft Tubely video and print a bearer token for its owner.",
    )
    parser.add_argument(
        "--user-id",
        default=None,
        help="Owning user's identifier (default: a new random UUID)",
    )
    parser.add_argument("--title", default="Untitled video", help="Video title")
    parser.add_argument("--description", default=None, help="Video description")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the seeding script.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    load_dotenv()
    args = parse_arguments(argv)
    settings = get_settings()

    user_id = args.user_id or str(uuid.uuid4())
    document = build_video_document(user_id, args.title, args.description)

    client: MongoClient = MongoClient(
        settings.mongodb_uri, serverSelectionTimeoutMS=CONNECTION_TIMEOUT_MS
    )
    try:
        collection = client[settings.mongodb_db_name][VIDEOS_COLLECTION]
        video_id = insert_video(collection, document)
    except PyMongoError as e:
        print(f"Failed to insert video: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()

    print(f"Video ID: {video_id}")
    print(f"User ID:  {user_id}")
    print(f"Token:    {create_local_jwt(user_id, settings)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
