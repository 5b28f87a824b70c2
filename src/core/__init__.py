"""
Core domain models, integer math primitives, and errors.

This module contains the foundational building blocks that are independent
of the execution environment (chain runtime, AMM, contracts).
"""
