"""
Test support utilities for shipwright tests.

Fakes and helpers that are not pytest fixtures but are shared across test
modules. Import them as ``from tests._support.fakes import ...``.
"""
