"""
apstrakit — policy, connectivity-template and graph-query core for an Apstra client.

apstrakit holds the parts of a fabric-controller REST client that carry real
ordering and identity rules. The HTTP transport is supplied by the caller as a
request executor; everything here is synchronous and thread-safe.

Package layout (src/apstrakit/):
  core/     — exceptions, config, logging, request context, executor, locks
  query/    — graph query DSL (path, match and raw queries)
  policy/   — port range codec, security policy model, rule list editor
  ct/       — connectivity template policy tree builder
  cli/      — Click CLI entry point
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
