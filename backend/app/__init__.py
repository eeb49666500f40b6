"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application that ingests user-submitted
video files, normalizes them for progressive playback, stores them in S3-compatible
object storage and hands out short-lived signed playback URLs. The platform provides:

- Multi-stage upload validation (declared type, MP4 container signature, size)
- Orientation-aware storage keys derived from probed stream dimensions
- Fast-start remuxing through ffmpeg before upload
- Thumbnail uploads for existing videos
- Local JWT bearer authentication

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (auth, database, storage, error taxonomy)
- models/: Pydantic data models for video records and storage references
- services/: Ingestion pipeline components and the upload orchestrator
- utils/: Logging and file validation helpers
"""

__version__ = "1.0.0"
__app_name__ = "Tubely"
