"""Rebuild the tenure history of French académie rectors from recteurs.json snapshots."""

__version__ = "0.1.0"
