"""
Marketplace Order Relay

Relays order webhooks from Getir, Yemeksepeti and Migros Yemek to a single
order event channel, and proxies Getir order actions with managed tokens.
"""

__version__ = "1.0.0"
