"""Domain models.

Plain data describing provisioning runs. The domain knows nothing about
subprocess, Typer or the filesystem layout of the host.
"""
