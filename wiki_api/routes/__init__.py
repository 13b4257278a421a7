# Routes package init
"""
Wiki API — Routes Package
===========================

Route Inventory:
    - articles.py: /articles          (GET, POST, DELETE on the collection)
                   /articles/{title}  (GET, PUT, PATCH, DELETE on one article)
    - health.py:   GET /health        (service health check)

Routes stay thin: parse the request, call one ArticleStore method, return.
"""
