"""
Payment Service Test Suite

This package contains all tests for the payment service including:
- Unit tests for the adapter contract and shared value types
- Ogone request building, signing and response normalization tests
- HTTP API tests
- Configuration tests
"""
