"""Fair allocation and insight engine for shared-living chore tracking."""

__version__ = "0.1.0"
