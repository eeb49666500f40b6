"""
Core infrastructure services for the Tubely backend application.

This package contains the foundational infrastructure components that provide:
- auth: Bearer token authentication with locally issued HS256 JWTs
- database: MongoDB async client (Motor) and the video metadata store
- storage: S3-compatible object storage client for uploads and presigned URLs
- exceptions: Error taxonomy shared by the ingestion pipeline

Clients in this package follow the singleton pattern for efficient resource management.
"""
