"""
Stay Watch listing alerts

A scheduled relay that polls a stay-listings search API, compares the
results with the listings each subscription has already seen, and posts
new listings to Telegram chats.
"""

__version__ = "0.1.0"
__author__ = "Stay Watch Team"
