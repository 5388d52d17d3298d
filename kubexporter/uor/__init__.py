"""
Owner Reference Repair

Rewrites stale ownerReference UIDs of exported files against a live cluster.
"""

from .update import OwnerReferenceRepair, RepairResult

__all__ = ['OwnerReferenceRepair', 'RepairResult']
