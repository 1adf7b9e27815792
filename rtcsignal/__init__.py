"""HTTP signaling layer for bootstrapping peer-to-peer transport sessions."""

__version__ = "0.3.0"
