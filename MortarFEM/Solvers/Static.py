"""
Static Solvers - Nonlinear Static Analysis of Mortar Problems
==============================================================

This module provides the Newton driver for coupled displacement /
multiplier systems produced by the mortar problems.

Key Concepts:
-------------

**Coupled (u, λ) system**:
    Each assembly of a mortar problem returns the linearization

    [K   C1ᵀ] [Δu]   [f]
    [C2  D  ] [Δλ] = [g]

    of its residual [fc; C]. An optional linear field stiffness K_f and an
    external load P (e.g. springs attached to the interface nodes) complete
    the mechanical equation

        K_f·u + fc(u, λ) = P

    so one Newton step solves

    [K_f + K   C1ᵀ] [Δu]   [f + P - K_f·u]
    [C2        D  ] [Δλ] = [g            ]

    restricted to the free displacement dofs and the multiplier dofs of the
    slave nodes (master nodes carry no multiplier).

**Formulation policies**:
    The increments are handed to ``problem.update_assembly`` in the form the
    problem's formulation expects:
    - 'total': (u + Δu, λ + Δλ)
    - 'incremental': (Δu, λ + Δλ)
    - 'forwarddiff': (Δu, Δλ)

**Convergence**:
    |(Δu, Δλ)| < tol. Near active set changes of a contact problem the
    convergence is only locally quadratic.
"""

import time

import numpy as np
import scipy.sparse as sp  # Sparse Matrix Storage
import scipy.sparse.linalg as spla  # Sparse Linear Algebra

from MortarFEM.Exceptions import ConvergenceError, SingularSystemError


# =============================================================================
# SOLVER CONSTANTS
# =============================================================================

class SolverConstants:
    """Global constants for nonlinear solver algorithms.

    These can be overridden by passing explicit values to solver methods.
    """
    INCREMENT_TOLERANCE = 1e-9   # Converged when |(du, dla)| drops below this
    MAX_ITERATIONS = 25          # Max Newton-Raphson iterations per step


class StaticNonLinear:
    """
    Solver for nonlinear static equilibrium of mortar problems (Newton-Raphson).
    """

    @staticmethod
    def _increments_for(formulation, u, la, du, dla):
        if formulation == 'total':
            return u + du, la + dla
        if formulation == 'incremental':
            return du, la + dla
        return du, dla

    @staticmethod
    def _solve_saddle_point(K, C1, C2, D, R_u, R_c, dof_free, dof_lambda):
        """Solve the restricted block system, returns (du_free, dla_lambda)."""
        A = sp.bmat([
            [K[dof_free][:, dof_free], C1.T[dof_free][:, dof_lambda]],
            [C2[dof_lambda][:, dof_free], D[dof_lambda][:, dof_lambda]],
        ], format='csc')
        rhs = np.concatenate([R_u[dof_free], R_c[dof_lambda]])
        try:
            sol = spla.spsolve(A, rhs)
        except (RuntimeError, ValueError) as e:
            raise SingularSystemError(f"Coupled system could not be solved: {e}") from e
        sol = np.atleast_1d(sol)
        if not np.all(np.isfinite(sol)):
            raise SingularSystemError(
                "Coupled system is singular (check supports and multiplier dofs)")
        n_free = len(dof_free)
        return sol[:n_free], sol[n_free:]

    @staticmethod
    def solve_mortar(problem, K_field=None, P=None, fixed_dofs=(), time_step=0.0,
                     tol=SolverConstants.INCREMENT_TOLERANCE,
                     max_iter=SolverConstants.MAX_ITERATIONS, verbose=True):
        """
        Newton iteration of a mortar problem to the converged (u, λ).

        Parameters
        ----------
        problem : BaseMortar
            Tying or contact problem; its assembly state is the initial guess
        K_field : array_like or sparse, optional
            Linear stiffness acting on the interface dofs, shape (ndofs, ndofs)
        P : np.ndarray, optional
            External load on the interface dofs
        fixed_dofs : sequence of int
            Interface dofs held at their current value
        time_step : float
            Analysis time of the assembly and the element snapshots
        tol : float
            Tolerance on |(Δu, Δλ)|
        max_iter : int
            Newton iteration budget

        Returns
        -------
        u, la : np.ndarray
            Converged displacement and multiplier vectors
        history : dict
            Per-iteration increment norms and, for contact, active sets

        Raises
        ------
        ConvergenceError
            If the budget is exhausted
        SingularSystemError
            If a linear solve fails
        """
        time_start = time.time()
        problem.initialize(time_step)
        interface = problem.interface
        ndofs = interface.ndofs

        K_field = sp.csr_matrix((ndofs, ndofs)) if K_field is None else sp.csr_matrix(K_field)
        P = np.zeros(ndofs) if P is None else np.asarray(P, dtype=float)
        dof_free = np.setdiff1d(np.arange(ndofs), np.asarray(fixed_dofs, dtype=int))
        dof_lambda = np.array(interface.find_dofs_by_nodes(interface.slave_node_ids), dtype=int)

        history = {'du_norm': [], 'dla_norm': [], 'active_nodes': [], 'iterations': 0,
                   'converged': False}

        if verbose:
            print(f"\nStarting {problem.mortar_type} Newton iteration ({problem.formulation}).")
            print(f"Free dofs: {len(dof_free)}, multiplier dofs: {len(dof_lambda)}")

        for iteration in range(1, max_iter + 1):
            result = problem.assemble(time_step)
            u, la = problem.assembly.u, problem.assembly.la

            K = (K_field + result.K).tocsr()
            R_u = result.f + P - K_field @ u
            du_free, dla_lambda = StaticNonLinear._solve_saddle_point(
                K, result.C1, result.C2, result.D, R_u, result.g, dof_free, dof_lambda)

            du = np.zeros(ndofs)
            dla = np.zeros(ndofs)
            du[dof_free] = du_free
            dla[dof_lambda] = dla_lambda
            problem.update_assembly(*StaticNonLinear._increments_for(
                problem.formulation, u, la, du, dla))

            du_norm, dla_norm = np.linalg.norm(du), np.linalg.norm(dla)
            history['du_norm'].append(du_norm)
            history['dla_norm'].append(dla_norm)
            if hasattr(problem, 'active_set'):
                history['active_nodes'].append(sorted(problem.active_set.active))
            history['iterations'] = iteration

            if verbose:
                print(f"  Iter {iteration}: |du|={du_norm:.2e}, |dla|={dla_norm:.2e}")

            if np.hypot(du_norm, dla_norm) < tol:
                history['converged'] = True
                break

        if not history['converged']:
            raise ConvergenceError(
                f"Mortar Newton iteration did not converge in {max_iter} iterations "
                f"(last |du|={history['du_norm'][-1]:.2e}, |dla|={history['dla_norm'][-1]:.2e})")

        problem.update_elements(time_step)
        if verbose:
            print(f"Converged after {history['iterations']} iterations "
                  f"({time.time() - time_start:.3f} s)")
        return problem.assembly.u.copy(), problem.assembly.la.copy(), history
