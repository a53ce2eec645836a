# Services package init
"""
Quotes API — Services Layer
=============================

What:  Persistence and business rules sitting between the routes (HTTP) and
       the storage backends.
How:   Instances are built once by `create_app()` and parked on `app.state`;
       routes reach them through the dependencies in `quotes_api.dependencies`.

Service Inventory:
    - QuoteStore (abstract): contract shared by both quote backends
    - FileQuoteStore: quotes in one JSON array file
    - SqlQuoteStore: quotes in the `quotes` table
    - UserService: registration, login, profile updates
    - TokenService + password helpers (security.py): JWT and bcrypt
"""
