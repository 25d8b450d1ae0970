"""
CharityOnMe donation backend: Stripe payments, webhooks and the donation site.
"""

__version__ = "1.0.0"
