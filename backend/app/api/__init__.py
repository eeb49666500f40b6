"""
Tubely API Package.

This package contains all API endpoint implementations for the Tubely video
ingestion service. The API is organized by version to support backward
compatibility and future API evolution.

Package Structure:
    - v1/: Version 1 API endpoints (current stable version)
        - videos.py: Video upload, thumbnail upload and playback retrieval endpoints

All endpoints are versioned under the /api/v1 URL prefix.
"""
