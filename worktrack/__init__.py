"""
WorkTrack Portal sync and notification layer.

Keeps a signed-in viewer's orders, comments and files in step with the
backend and turns remote changes into inbox notifications.
"""

__version__ = "1.0.0"
