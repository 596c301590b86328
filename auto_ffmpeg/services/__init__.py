"""
Services package for auto-ffmpeg.

Each service performs one step of a job and is shared by all worker threads:

- **Discovery (`discovery.py`):** lists the candidate input files of a batch.
- **Output resolution (`output_resolver.py`):** derives and creates the
  destination directory of each job.
- **Probing (`media_prober.py`):** runs ffprobe and applies the probe-match
  content filter.
- **Progress (`progress_store.py`):** the resumable record of converted files.
- **Transcoding (`transcode.py`):** builds and launches the encoder command.
- **Error log (`logging_service.py`):** appends job-fatal errors to `error.txt`.
"""
