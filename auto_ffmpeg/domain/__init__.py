"""
Core domain models of auto-ffmpeg.

Modules:
    exceptions.py: The exception hierarchy raised by the loader, the output
                   resolver and the prober.
    models.py: The immutable `Configuration`, the `ProbeMatchSection` filter
               unit, and the per-job `JobOutcome` / `BatchResult` records.
"""
