"""
Storefront Test Suite

Tests are organized into:
- unit/: Stores, order manager, guard, security and uploader
- integration/: HTTP API through an in-process client
"""
