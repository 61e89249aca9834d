"""
Integration tests for the order relay.

These tests run the application with its real service wiring, with only the
partner APIs replaced by an in-process transport:
- Startup token acquisition and background refresh
- Cached-token and client-token Getir routes sharing one HTTP client
- Webhook delivery to event bus subscribers
- Shutdown cleanup of singletons
"""
