"""
MortarFEM Solvers

Newton driver for coupled displacement / multiplier systems.

Solvers
-------
StaticNonLinear : Nonlinear static equilibrium of mortar problems
    - solve_mortar(): Newton-Raphson on (u, lambda) with sparse saddle point solves

SolverConstants : Default tolerances and iteration budgets
"""

from .Static import SolverConstants, StaticNonLinear

__all__ = [
    'SolverConstants',
    'StaticNonLinear',
]
