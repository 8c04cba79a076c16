"""
MapNav backend: visit analytics, saved places, routing and place search.
"""
__version__ = "1.0.0"
