"""Core module - shared infrastructure for the reconciliation engine.

This module contains the input record models, artifact storage, and
observability (logging and metrics). Matching and scoring logic belongs
in /reconciliation/.
"""

__version__ = "1.0.0"
