# Routes package init
"""
Quotes API — Routes Package
=============================

Route Inventory:
    - quotes.py:  GET/POST /quotes, GET /quotes/random,
                  GET/PUT/DELETE /quotes/{id}
    - auth.py:    POST /auth/register, POST /auth/login
    - users.py:   GET/PUT /users/me
    - health.py:  GET /health

Handlers stay thin: pull input off the request, call a store or service,
wrap the result in the envelope. Errors are raised, never returned.
"""
