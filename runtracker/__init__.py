"""
runtracker - GPS run tracking engine and run history service.
"""

__version__ = "0.1.0"
