"""Dockfleet: управление парком удалённых Docker-хостов через SSH."""

__version__ = "0.3.0"
