"""
AssetGC - lifecycle management for media assets held in an external blob store.

Reclaims assets no application document references any more: a differential
reconciler on every mutation, and a periodic sweep that records the leaks it
finds for review.
"""

__version__ = "1.0.0"
