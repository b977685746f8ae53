"""
ghcl: fork a GitHub repository and clone the fork, waiting for it to exist.
"""

__version__ = "0.1.0"
