"""Core (UI-agnostic) dashboard logic.

This package contains:
- sheet source configuration and the mock sheet accessor
- record types and the per-page list controller (filter/sort/group, edit slot)
- the shared-password gate
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
