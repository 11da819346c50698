"""Async client library for the job-board REST backends."""
