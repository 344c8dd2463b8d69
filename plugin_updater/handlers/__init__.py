"""
Handlers package for the plugin updater.

This package contains API request handlers for:
- Update status
- Manual update checks
- Enabling and disabling component updates
- Update configuration
"""
