"""
Pumpwatch: run-event tracking for water-pump controllers.

Field devices ping their instantaneous current draw; the service groups
pings into operating sessions separated by silences longer than the
session timeout and compiles each closed session into a run event.

CHANGELOG:
- 2026-10-18: Initial creation
"""

__version__ = "0.1.0"
