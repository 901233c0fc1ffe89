"""Repoforge: Slack-driven GitHub repository provisioning."""

__version__ = "0.1.0"
