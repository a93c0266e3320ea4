"""
Platebase — API Routes Package
================================

Route Inventory:
    - dishes.py:  GET    /dishes            (list, price filters)
                  POST   /dishes            (create or replace by name)
                  GET    /dishes/{id}       (detail, photo as data URI)
                  PUT    /dishes/{id}       (partial update)
                  DELETE /dishes/{id}       (delete)
    - health.py:  GET    /health            (database health check)

Routes stay thin: extract request data, call the service, return its result.
"""
