"""Referral Chains API: federated read queries over per-chain MongoDB node collections."""

__version__ = "1.0.0"
