"""
Pipeline worker components for parallel classification.
"""

from .parallel_processor import ParallelProcessor, WorkChannel

__all__ = [
    'ParallelProcessor',
    'WorkChannel',
]
