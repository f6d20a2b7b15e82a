"""Configuration package for the callback gate."""
from .merchant_config import MerchantConfig, MerchantCredential, load_merchant_config

__all__ = ["MerchantConfig", "MerchantCredential", "load_merchant_config"]
