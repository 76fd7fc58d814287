"""
Python client for the marketplace API and the multi-step listing wizard built on it.
"""

from .api import MarketplaceClient
from .wizard import PropertyWizard

__all__ = ["MarketplaceClient", "PropertyWizard"]
