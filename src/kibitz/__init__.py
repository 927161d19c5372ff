"""Kibitz: engine orchestration and analysis navigation for chess UIs."""

__version__ = "0.1.0"
