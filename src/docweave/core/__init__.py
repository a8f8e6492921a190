"""Core editor machinery.

Resolution, schema assembly, transactions, state, command chains and the
``CoreEditor`` composition root.  Submodules in core/ should not import
from extensions.builtin/ or cli/.
"""
from __future__ import annotations
