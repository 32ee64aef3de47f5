"""
Access-control and monetization-integrity core for the resource marketplace.

Subpackages:
- entitlements: membership, creator and download decisions (fail closed)
- downloads: signed short-lived download tokens and the download flow
- billing: platform fee / seller earnings split
- platform: audit trail and API error shapes
"""

__version__ = "0.1.0"
