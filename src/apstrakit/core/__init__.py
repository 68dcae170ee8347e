"""
apstrakit.core — shared infrastructure.

Modules:
    constants   API paths, retry defaults, filesystem layout
    exceptions  apstrakit exception hierarchy
    config      Configuration loading (TOML + env vars)
    logs        stdlib logging setup
    context     Cancellation / deadline context threaded through every call
    executor    Request executor contract
    locks       Per-key advisory mutex map
    ids         Object identity minting
"""
