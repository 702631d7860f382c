"""
geonotify: geofenced incident notifications.

Matches reported user locations against active incident zones and
delivers webhook notifications through a durable queue.
"""

__version__ = "0.1.0"
