"""
Infrastructure layer for ghcl: logging, error taxonomy, retry coordination
and configuration loading.
"""
