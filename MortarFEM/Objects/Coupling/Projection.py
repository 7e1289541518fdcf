"""
Contact Point Projection
========================

Two scalar Newton root-finders on the parametric line ξ of a segment.

**Master → slave** (segmentation):
    Find ξ on the slave such that x1(ξ) - x2 is parallel to n1(ξ)
        R(ξ)  = (x1(ξ) - x2) × n1(ξ)
        R'(ξ) = x1'(ξ) × n1(ξ) + (x1(ξ) - x2) × n1'(ξ)

**Slave → master** (Gauss point projection):
    Find ξ on the master such that x2(ξ) - x1 is parallel to the fixed n1
        R(ξ)  = (x2(ξ) - x1) × n1
        R'(ξ) = x2'(ξ) × n1

Both start from ξ = 0 and stop when |Δξ| < tol. The iteration runs on
plain values; when the inputs carry sensitivities the converged root gets
them from the implicit-function theorem (see ``ForwardMode.implicit_root``).

Projectors never raise on non-convergence: the caller decides between
skipping and ``ProjectionError`` from the returned ``ProjectionResult``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Tuple

import numpy as np

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Objects.Coupling.Config import MortarConstants
from MortarFEM.Objects.Coupling.Geometry import cross2


@dataclass
class ProjectionResult:
    """
    Outcome of one projection.

    Attributes
    ----------
    converged : bool
        True if |Δξ| dropped below the tolerance
    xi : float or AdArray
        Root (last iterate if not converged)
    iterations : int
        Number of Newton updates larger than the tolerance
    residual : float
        R at the last iterate
    dresidual : float
        R' at the last iterate
    step : float
        Last Newton step Δξ
    message : str
        Diagnostic values of inputs and last iterate on failure
    """
    converged: bool
    xi: Any
    iterations: int
    residual: float = 0.0
    dresidual: float = 0.0
    step: float = 0.0
    message: str = ''


def _newton(residual: Callable[[float], Tuple[float, float]], tol: float,
            max_iterations: int) -> ProjectionResult:
    xi, dxi = 0.0, 0.0
    R, dR = residual(xi)
    iterations = 0
    for _ in range(max_iterations):
        if dR == 0.0 or not np.isfinite(dR):
            break
        dxi = -R / dR
        xi += dxi
        R, dR = residual(xi)
        if abs(dxi) < tol:
            return ProjectionResult(True, xi, iterations, R, dR, dxi)
        iterations += 1
    return ProjectionResult(False, xi, iterations, R, dR, dxi)


def _describe(result: ProjectionResult, direction: str, **inputs) -> str:
    lines = [f"find projection from {direction}: did not converge"]
    lines += [f"  {name} = {np.array2string(F.value(v), precision=12)}" for name, v in inputs.items()]
    lines.append(f"  xi = {result.xi}, dxi = {result.step}")
    lines.append(f"  -R(xi) = {-result.residual}")
    lines.append(f"  dR(xi) = {result.dresidual}")
    return "\n".join(lines)


def project_master_to_slave(slave_element, x1, n1, x2,
                            tol: float = MortarConstants.PROJECTION_TOLERANCE,
                            max_iterations: int = MortarConstants.MAX_PROJECTION_ITERATIONS
                            ) -> ProjectionResult:
    """
    Project master point ``x2`` onto the slave along the interpolated slave normal.

    Parameters
    ----------
    slave_element : BaseFE
        Slave segment
    x1 : np.ndarray or AdArray
        Deformed slave node positions, shape (nnodes, dim)
    n1 : np.ndarray or AdArray
        Slave nodal normals, shape (nnodes, dim)
    x2 : np.ndarray or AdArray
        Target point, shape (dim,)

    Returns
    -------
    ProjectionResult
        ``xi`` is the slave parametric coordinate
    """
    x1v, n1v, x2v = F.value(x1), F.value(n1), F.value(x2)

    def residual(xi):
        N, dN = slave_element.basis(xi), slave_element.dbasis(xi)
        d = N @ x1v - x2v
        R = cross2(d, N @ n1v)
        dR = cross2(dN @ x1v, N @ n1v) + cross2(d, dN @ n1v)
        return float(R), float(dR)

    result = _newton(residual, tol, max_iterations)
    if not result.converged:
        result.message = _describe(result, "master to slave", x1=x1, n1=n1, x2=x2)
        return result

    N = slave_element.basis(result.xi)
    R_ad = cross2(N @ x1 - x2, N @ n1)
    result.xi = F.implicit_root(result.xi, R_ad, result.dresidual)
    return result


def project_slave_to_master(master_element, x1, n1, x2,
                            tol: float = MortarConstants.PROJECTION_TOLERANCE,
                            max_iterations: int = MortarConstants.MAX_PROJECTION_ITERATIONS
                            ) -> ProjectionResult:
    """
    Project slave point ``x1`` onto the master along the fixed direction ``n1``.

    Parameters
    ----------
    master_element : BaseFE
        Master segment
    x1 : np.ndarray or AdArray
        Slave Gauss point position, shape (dim,)
    n1 : np.ndarray or AdArray
        Slave normal at the Gauss point, shape (dim,)
    x2 : np.ndarray or AdArray
        Deformed master node positions, shape (nnodes, dim)

    Returns
    -------
    ProjectionResult
        ``xi`` is the master parametric coordinate
    """
    x1v, n1v, x2v = F.value(x1), F.value(n1), F.value(x2)

    def residual(xi):
        N, dN = master_element.basis(xi), master_element.dbasis(xi)
        R = cross2(N @ x2v - x1v, n1v)
        dR = cross2(dN @ x2v, n1v)
        return float(R), float(dR)

    result = _newton(residual, tol, max_iterations)
    if not result.converged:
        result.message = _describe(result, "slave to master", x1=x1, n1=n1, x2=x2)
        return result

    N = master_element.basis(result.xi)
    R_ad = cross2(N @ x2 - x1, n1)
    result.xi = F.implicit_root(result.xi, R_ad, result.dresidual)
    return result
