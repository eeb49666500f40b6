"""
Services module for Tubely backend application.

This package contains the video ingestion pipeline, leaf components first:

- media_probe: Container Prober (ffprobe) and aspect ratio classification
- fast_start: Fast-Start Normalizer (ffmpeg stream-copy remux)
- key_deriver: Orientation-prefixed random storage keys
- staging: Per-request temporary files with guaranteed cleanup
- playback_signer: StorageReference to signed playback URL conversion
- video_upload_service: Upload Orchestrator driving the stages above

The blocking stages (subprocesses, boto3) are executed off the event loop so the
orchestrator can be injected through FastAPI's dependency system.
"""
