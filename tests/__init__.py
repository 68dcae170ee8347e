"""
apstrakit test suite.

Tests are organized by component:
    tests/unit/     Core plumbing, port codec, query DSL, config, CLI
    tests/policy/   Policy model and the ordered rule editor
    tests/ct/       Connectivity template encoders, builder and client

tests/fakes.py holds the in-memory request executor shared by all of them.

Run all tests:
    pytest
"""
