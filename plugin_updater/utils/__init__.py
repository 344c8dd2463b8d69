"""
Utils package for the plugin updater.

This package contains utility functions for:
- Artifact path normalization for remote URLs
- Blocking file reads and writes run in executors
"""
