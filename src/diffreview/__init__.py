"""diffreview — structure a diff, run analysis stages over it, report findings."""

__version__ = "1.0.0"
