"""
MET API — API Routes Package
==============================

Route Inventory:
    - vice_bank.py:  /api/vice_bank/*   token ledger
    - notes.py:      /api/notes/*       personal notes
    - blog.py:       /api/blog/*        blog posts
    - files.py:      /api/files/*       uploads
    - budget.py:     /api/budget/*      budgets and transactions
    - backup.py:     POST /api/backup   snapshot every collection
    - health.py:     GET  /health

Shared pieces:
    - common.py:  error mapping, query/body parsing, require_auth
    - crud.py:    the uniform list/get/add/update/delete route set
"""
