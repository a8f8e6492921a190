"""CLI package.

The ``cli`` sub-package contains the Click application.  It builds
editors through ``docweave.config`` and reports through Rich; it holds
no editing logic of its own.
"""
from __future__ import annotations
