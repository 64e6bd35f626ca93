"""
Service Status Page: container and URL monitor.

Periodically probes a fixed list of services, each backed by a container
and a public URL, keeps the latest status snapshot and a bounded incident
history, and serves both over a small JSON API.
"""

__version__ = "1.0.0"
