"""
Trip Track Backend — API Routes Package
=========================================

Route Inventory:
    - health.py:  GET /health   (database connectivity, uptime)

Resource handlers stay thin: parse the request, open a session with
`Depends(get_db_session)`, call one service method, return its pydantic
model. Errors propagate to the handlers registered in main.py.
"""
