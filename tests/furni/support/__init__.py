"""Test doubles shared by the storefront client tests."""
