"""HTTP and WebSocket surface of the marketplace.

The application factory lives in ``taskmarket.api.main``.
"""
