"""
Workstation onboarding orchestrator.

Installs a fixed catalog of developer tools in dependency order across a
public-network phase and a private-network (VPN) phase.
"""

__version__ = "0.1.0"
