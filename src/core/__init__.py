"""Core domain package for geosite-sync.

Core contains list parsing, include resolution and the reconciliation logic
without any HTTP or router-specific code, keeping the business logic portable.
"""
