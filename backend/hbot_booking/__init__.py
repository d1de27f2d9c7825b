"""Hyperbaric session booking backend: slots, checkout, Stripe reconciliation and session credits."""

__version__ = "1.0.0"
