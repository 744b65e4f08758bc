"""
MET API — Services Layer
==========================

What:  Business rules that span more than one repository.

Service Inventory:
    - LedgerService:  vice bank token balances vs. ledger entries
    - BudgetService:  budget fund recalculation from transactions
    - FileService:    upload validation, storage and cleanup

Routes stay thin: they parse input, call a repository or a service, and
map errors. Anything touching two collections lives here.
"""
