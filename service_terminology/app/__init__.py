"""
Terminology Service package for the Terminology Access Layer.

The service fronts a remote terminology server, providing:
- Session management: one service-account session shared by all requests
- A retrying HTTP gateway that recovers from expired sessions
- Search normalization shared by every entity search

Structure:
- app.main: FastAPI app, routes, and lifecycle wiring.
- app.auth: Authenticator and process-wide session cache.
- app.adapters: HTTP gateway to the terminology server.
- app.search: Search request models, normalizer and search facade.
"""
