"""
event_authz
===========
External admission-control oracle for a message-relay network.

Provides:
- DecisionEngine: permit/deny verdicts for candidate events
- Account directory with SQLite or relay-replicated storage
- In-band administrator control events and an HTTP control API
"""

__version__ = "0.3.0"
