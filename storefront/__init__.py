"""
Storefront Order Service

Checkout, inventory, discount codes and order fulfilment for a small online
store.
"""

__version__ = "1.0.0"
