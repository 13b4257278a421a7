# Services package init
"""
Wiki API — Services Layer
===========================

Service Inventory:
    - ArticleStore: Document-store operations for articles (one per request)
"""
