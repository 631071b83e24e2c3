"""Data-access layer for the Furni storefront: catalog, social session and cart."""
