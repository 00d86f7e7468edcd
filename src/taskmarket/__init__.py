"""Task marketplace backend: posters, experts, task lifecycle and real-time relay."""

__version__ = "0.1.0"
