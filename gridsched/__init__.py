"""
GridSched: locality-aware map task placement for a batch job master.
"""

__version__ = "1.0.0"
