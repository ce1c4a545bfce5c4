"""EduTrack - video watch progress tracking for the learning platform."""

__version__ = "0.1.0"
