"""whatnext: priority-weighted activity picker with offline-first sync."""

__version__ = "1.0.0"
