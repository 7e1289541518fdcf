"""
Linearization of the interface functional.

The functional r(x), x = [u; λ], is evaluated once on a seeded AdArray. Its
Jacobian A = dr/dx and value are pruned (|a| <= drop_tolerance) and split on
the half index n = len(x)/2:

    K  = A[:n, :n]        C1 = A[:n, n:]ᵀ
    C2 = A[n:, :n]        D  = A[n:, n:]
    f  = -r[:n]           g  = -r[n:]

so that one Newton step solves

    [K   C1ᵀ] [Δu]   [f]
    [C2  D  ] [Δλ] = [g]
"""

from dataclasses import dataclass
from typing import Callable

import numpy as np
import scipy.sparse as sp

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Exceptions import MortarConfigurationError
from MortarFEM.Objects.Coupling.Config import MortarConstants


@dataclass
class AssemblyResult:
    """
    Tangent blocks and residual vectors of one assembly call.

    Attributes
    ----------
    K, C1, C2, D : scipy.sparse.csr_matrix
        Each of shape (ndofs, ndofs)
    f, g : np.ndarray
        Force imbalance and constraint residual, shape (ndofs,)
    """
    K: sp.csr_matrix
    C1: sp.csr_matrix
    C2: sp.csr_matrix
    D: sp.csr_matrix
    f: np.ndarray
    g: np.ndarray

    @property
    def ndofs(self) -> int:
        return self.K.shape[0]

    def jacobian(self) -> sp.csr_matrix:
        """Full 2n x 2n Jacobian [[K, C1ᵀ], [C2, D]]."""
        return sp.bmat([[self.K, self.C1.T], [self.C2, self.D]], format='csr')

    def rhs(self) -> np.ndarray:
        return np.concatenate([self.f, self.g])


def prune(a: np.ndarray, tol: float) -> np.ndarray:
    a = np.array(a, dtype=float, copy=True)
    a[np.abs(a) <= tol] = 0.0
    return a


def linearize(functional: Callable, x: np.ndarray,
              drop_tolerance: float = MortarConstants.DROP_TOLERANCE) -> AssemblyResult:
    """
    Evaluate ``functional`` with forward-mode sensitivities and partition.

    Parameters
    ----------
    functional : callable
        Maps an (AD) vector of length 2n to an (AD) vector of length 2n
    x : np.ndarray
        Trial point [u; λ]
    drop_tolerance : float
        Entries of A and b with magnitude at or below this are dropped

    Returns
    -------
    AssemblyResult
    """
    x = np.asarray(x, dtype=float)
    if x.ndim != 1 or x.size % 2:
        raise MortarConfigurationError(
            f"Unknown vector must be 1-D of even length, got shape {x.shape}")
    r = functional(F.init_ad_array(x))
    if not F.is_ad(r):
        raise TypeError("Interface functional dropped the sensitivities of its input")

    A = sp.csr_matrix(prune(r.jac, drop_tolerance))
    b = prune(-r.val, drop_tolerance)
    n = x.size // 2
    return AssemblyResult(
        K=A[:n, :n].tocsr(),
        C1=A[:n, n:].T.tocsr(),
        C2=A[n:, :n].tocsr(),
        D=A[n:, n:].tocsr(),
        f=b[:n],
        g=b[n:],
    )
