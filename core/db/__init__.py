"""
Persistence building blocks for the resource apps: soft-delete managers,
abstract UUID/soft-delete/versioned models and the optimistic-lock error.
"""
