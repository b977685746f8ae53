"""
User-facing interfaces for ghcl: the Python API and the command line.
"""
