"""Consensus-gated workflow components.

- Settings loaded from .env
- Structured logging
- Node-local execution with consensus reduction
- Bridge simulation and compliance sync workflows
"""
