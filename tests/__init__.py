"""
Test suite for ssmigrate.

Unit tests live in tests/unit, one module per source module.
"""
