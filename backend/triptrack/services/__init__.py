"""
Trip Track Backend — Services Layer
=====================================

What:  Business logic layer sitting between route handlers (HTTP) and the
       database (persistence).
How:   Each service method takes the request's AsyncSession, enforces the
       cross-entity rules, flushes, and returns pydantic response models.
       Failures are raised as TripTrackError subclasses and never caught
       here; the HTTP shell maps them to status codes.

Service Inventory:
    - UserService: accounts, password checks, follow graph, bookmarks
    - AuthService: login and session validation
    - RouteService: routes, likes, comments, feeds, search, nearby
    - ConversationService: idempotent conversations, last-message pointer
    - MessageService: messages, read receipts, two-phase send
    - pagination: the `{data, total, pages}` envelope shared by listings
"""
