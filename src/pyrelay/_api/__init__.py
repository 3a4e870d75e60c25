"""Endpoint modules: one coroutine per backend REST call."""
