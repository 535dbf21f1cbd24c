"""Real-time notification feed synchronization engine."""

__version__ = "0.1.0"
