"""Application services layer (authenticated API client, auth session, wiring).

Services coordinate work across domains and infrastructure. They should avoid
UI concerns.
"""
