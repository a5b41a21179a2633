"""Image processing primitives."""

from .transcoder import compute_sample_size, transcode

__all__ = ["compute_sample_size", "transcode"]
