"""Declarative provisioning for Lambda Cloud instances and SSH keys."""

__version__ = "0.1.0"
