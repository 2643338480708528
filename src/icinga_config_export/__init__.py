"""
icinga_config_export — Icinga 2 configuration package exporter.

Reads every config package's active stage through the Icinga 2 REST API
(/v1/config) over CA-pinned TLS and writes one JSON bundle per package.

Error handling follows Railway-Oriented Programming: each step returns a
Result and the first failure ends the run.
"""

__version__ = "0.1.0"
