"""Core module - shop-neutral models and shared infrastructure.

This module contains the canonical order models, configuration, field
mapping, feed access control, logging and the error taxonomy. It knows
nothing about the CRM's document layout.

The feed document itself is built in /feed/; talking to the CRM belongs in
/connectors/.
"""

__version__ = "1.0.0"
