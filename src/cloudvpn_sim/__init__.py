"""Synthesize simulated VPN gateway configuration from AWS VPN connection descriptors."""

__version__ = "0.1.0"
