"""liftcoach: adaptive strength-training engine."""

__version__ = "0.1.0"
