"""
Snippetbox — Routes Package
============================

Route Inventory:
    - health.py:    GET  /ping                          (no middleware chain)
    - pages.py:     GET  /, /about                      (dynamic)
    - snippets.py:  GET  /snippet/view/{id}             (dynamic)
                    GET/POST /snippet/create            (protected)
    - users.py:     GET/POST /user/signup, /user/login  (dynamic)
                    POST /user/logout                   (protected)
    - account.py:   GET  /account/view                  (protected)
                    GET/POST /account/password/update   (protected)

Design Principle:
    Routes stay THIN: decode the form, call a service, pick the template
    or redirect. Data access belongs in services.
"""
