"""
Core orchestration for ghcl.
"""

from .provisioner import ForkProvisioner

__all__ = [
    "ForkProvisioner",
]
