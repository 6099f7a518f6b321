# Module Importer - load module fixtures (fiches, videos, quizzes) into Firestore
"""
Module Importer reads JSON fixtures describing learning modules and writes
them to Firestore with merge semantics, optionally emptying each module's
child collections first.
"""

__version__ = "0.1.0"
