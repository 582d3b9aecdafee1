"""
Snippetbox — Services Layer
============================

What:  Data access sitting between routes (HTTP) and models (persistence).
How:   Stateless service objects; every method takes the request's
       AsyncSession as its first argument.

Service Inventory:
    - SnippetService: insert, get (unexpired only), latest
    - UserService:    insert, authenticate, exists, get, update_password
"""
