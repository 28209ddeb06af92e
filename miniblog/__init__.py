"""Building blocks for a small blog API server: request contexts, errors,
structured logging, version information, password hashing and access control,
JWT tokens, resource IDs, HTTP middleware, RPC interceptors and API models."""

__version__ = "0.1.0"