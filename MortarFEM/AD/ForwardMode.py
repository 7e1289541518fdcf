"""
Forward-Mode Automatic Differentiation
=======================================

Every quantity of the interface residual is carried as an ``AdArray``: a numeric
value together with its sensitivity with respect to the full unknown vector
x = [u; lambda].

    val : np.ndarray of shape S
    jac : np.ndarray of shape S + (n,)      jac[..., k] = d val / d x_k

Arithmetic propagates the chain rule, so evaluating the residual on a seeded
unknown vector (``init_ad_array``) yields both the residual and its exact
Jacobian in a single pass.

Key Concepts:
-------------

**Seeding**:
    x = init_ad_array(x0) -> val = x0, jac = I (n x n)

**Product rule**:
    d(a*b) = da*b + a*db

**Implicit roots**:
    A root xi(p) of R(xi, p) = 0 found by Newton iteration is not
    differentiated step by step. At convergence:
        d xi / d p = -(dR/dxi)^-1 * dR/dp
    see ``implicit_root``.

The trailing sensitivity axis is kept dense: interface problems are small and
the assembled Jacobian is pruned and stored sparse afterwards.
"""

import numpy as np

# einsum subscripts for d(A @ B) = dA @ B + A @ dB, keyed by (A.ndim, B.ndim)
_MATMUL_SUBSCRIPTS = {
    (2, 2): ('ijn,jk->ikn', 'ij,jkn->ikn'),
    (2, 1): ('ijn,j->in', 'ij,jn->in'),
    (1, 2): ('jn,jk->kn', 'j,jkn->kn'),
    (1, 1): ('jn,j->n', 'j,jn->n'),
}


def init_ad_array(x):
    """Seed an AdArray on vector x with an identity Jacobian."""
    x = np.array(x, dtype=float).ravel()
    return AdArray(x, np.eye(x.size))


class AdArray:
    """
    Array value with forward-mode sensitivities.

    Attributes
    ----------
    val : np.ndarray
        Value, any shape S (0-d for scalars)
    jac : np.ndarray
        Sensitivities, shape S + (nvar,)

    Notes
    -----
    ``__array_ufunc__ = None`` makes numpy arrays defer to the reflected
    operators of this class, so ``N @ x_nodes`` or ``2.0 * a`` with plain
    numpy operands on the left return AdArrays.
    """
    __array_ufunc__ = None

    def __init__(self, val, jac):
        self.val = np.asarray(val, dtype=float)
        self.jac = np.asarray(jac, dtype=float)
        if self.jac.shape[:-1] != self.val.shape:
            raise ValueError(
                f"Jacobian shape {self.jac.shape} does not match value shape {self.val.shape}")

    @property
    def shape(self):
        return self.val.shape

    @property
    def ndim(self):
        return self.val.ndim

    @property
    def nvar(self):
        return self.jac.shape[-1]

    @property
    def T(self):
        if self.ndim < 2:
            return self
        return AdArray(self.val.T, self.jac.transpose(1, 0, 2))

    def __len__(self):
        return len(self.val)

    def __repr__(self):
        return f"AdArray(val={self.val}, nvar={self.nvar})"

    def copy(self):
        return AdArray(self.val.copy(), self.jac.copy())

    # ----- indexing -----
    def __getitem__(self, idx):
        return AdArray(self.val[idx], self.jac[idx])

    def __setitem__(self, idx, other):
        if isinstance(other, AdArray):
            self.val[idx] = other.val
            self.jac[idx] = other.jac
        else:
            self.val[idx] = other
            self.jac[idx] = 0.0

    def add_at(self, idx, other):
        """Unbuffered in-place accumulation, repeated indices add up."""
        if isinstance(other, AdArray):
            np.add.at(self.val, idx, other.val)
            np.add.at(self.jac, idx, other.jac)
        else:
            np.add.at(self.val, idx, other)

    def reshape(self, *shape):
        if len(shape) == 1 and isinstance(shape[0], tuple):
            shape = shape[0]
        val = self.val.reshape(shape)
        return AdArray(val, self.jac.reshape(val.shape + (self.nvar,)))

    def sum(self, axis=None):
        if axis is None:
            return AdArray(self.val.sum(), self.jac.reshape(-1, self.nvar).sum(axis=0))
        if axis < 0:
            axis += self.ndim
        return AdArray(self.val.sum(axis=axis), self.jac.sum(axis=axis))

    # ----- arithmetic -----
    def __add__(self, other):
        if isinstance(other, AdArray):
            return AdArray(self.val + other.val, self.jac + other.jac)
        val = self.val + np.asarray(other, dtype=float)
        jac = np.broadcast_to(self.jac, val.shape + (self.nvar,)).copy()
        return AdArray(val, jac)

    def __radd__(self, other):
        return self.__add__(other)

    def __neg__(self):
        return AdArray(-self.val, -self.jac)

    def __sub__(self, other):
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, other):
        if isinstance(other, AdArray):
            val = self.val * other.val
            jac = self.jac * other.val[..., None] + self.val[..., None] * other.jac
            return AdArray(val, jac)
        other = np.asarray(other, dtype=float)
        return AdArray(self.val * other, self.jac * other[..., None])

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        if isinstance(other, AdArray):
            return self * other ** -1
        return self * (1.0 / np.asarray(other, dtype=float))

    def __rtruediv__(self, other):
        return (self ** -1) * other

    def __pow__(self, p):
        if isinstance(p, AdArray):
            raise TypeError("AdArray exponents are not supported")
        val = self.val ** p
        jac = (p * self.val ** (p - 1))[..., None] * self.jac
        return AdArray(val, jac)

    def __matmul__(self, other):
        return matmul(self, other)

    def __rmatmul__(self, other):
        return matmul(other, self)


# =============================================================================
# Helpers accepting AdArrays or plain numpy input
# =============================================================================

def value(a):
    """Strip sensitivities."""
    if isinstance(a, AdArray):
        return a.val
    return np.asarray(a, dtype=float)


def is_ad(a):
    return isinstance(a, AdArray)


def zeros(shape, nvar):
    shape = tuple(np.atleast_1d(shape))
    return AdArray(np.zeros(shape), np.zeros(shape + (nvar,)))


def zeros_like(a, shape=None):
    """Zeros carrying the same sensitivity width as a (plain array otherwise)."""
    shape = np.shape(value(a)) if shape is None else shape
    if isinstance(a, AdArray):
        return zeros(shape, a.nvar)
    return np.zeros(shape)


def add_at(target, idx, other):
    """np.add.at for plain and AD targets."""
    if isinstance(target, AdArray):
        target.add_at(idx, other)
    else:
        np.add.at(target, idx, value(other))


def _nvar_of(items):
    for item in items:
        if isinstance(item, AdArray):
            return item.nvar
    return None


def stack(items):
    """Stack along a new leading axis."""
    nvar = _nvar_of(items)
    vals = np.stack([value(item) for item in items])
    if nvar is None:
        return vals
    jac = np.stack([item.jac if isinstance(item, AdArray)
                    else np.zeros(np.shape(item) + (nvar,)) for item in items])
    return AdArray(vals, jac)


def concatenate(items):
    """Concatenate along the leading axis."""
    nvar = _nvar_of(items)
    vals = np.concatenate([np.atleast_1d(value(item)) for item in items])
    if nvar is None:
        return vals
    jacs = []
    for item in items:
        if isinstance(item, AdArray):
            jacs.append(item.jac.reshape(np.atleast_1d(item.val).shape + (nvar,)))
        else:
            jacs.append(np.zeros(np.atleast_1d(item).shape + (nvar,)))
    return AdArray(vals, np.concatenate(jacs))


def matmul(a, b):
    av, bv = value(a), value(b)
    val = av @ bv
    sub_a, sub_b = _MATMUL_SUBSCRIPTS[(av.ndim, bv.ndim)]
    jac = None
    if isinstance(a, AdArray):
        jac = np.einsum(sub_a, a.jac, bv)
    if isinstance(b, AdArray):
        term = np.einsum(sub_b, av, b.jac)
        jac = term if jac is None else jac + term
    if jac is None:
        return val
    return AdArray(val, jac)


def dot(a, b):
    """Inner product of two 1-D vectors."""
    return (a * b).sum()


def norm(a):
    """Euclidean norm of a 1-D vector."""
    if not isinstance(a, AdArray):
        return np.linalg.norm(a)
    return dot(a, a) ** 0.5


def outer(a, b):
    return a[:, None] * b[None, :]


def diag(v):
    """Diagonal matrix from a 1-D vector."""
    if not isinstance(v, AdArray):
        return np.diag(v)
    m = v.shape[0]
    jac = np.zeros((m, m, v.nvar))
    jac[np.arange(m), np.arange(m)] = v.jac
    return AdArray(np.diag(v.val), jac)


def inv(M):
    """
    Matrix inverse with d(M^-1) = -M^-1 dM M^-1.

    Raises np.linalg.LinAlgError for singular M.
    """
    if not isinstance(M, AdArray):
        return np.linalg.inv(M)
    Minv = np.linalg.inv(M.val)
    jac = -np.einsum('ij,jkn,kl->iln', Minv, M.jac, Minv)
    return AdArray(Minv, jac)


def absolute(a):
    if not isinstance(a, AdArray):
        return np.abs(a)
    return AdArray(np.abs(a.val), np.sign(a.val)[..., None] * a.jac)


def clip(a, lower, upper):
    """Clamp into [lower, upper]; clamped entries lose their sensitivity."""
    if not isinstance(a, AdArray):
        return np.clip(a, lower, upper)
    val = np.clip(a.val, lower, upper)
    jac = a.jac.copy()
    jac[(a.val < lower) | (a.val > upper)] = 0.0
    return AdArray(val, jac)


def implicit_root(root, residual, dresidual):
    """
    Attach sensitivities to a converged root of R(xi, p) = 0.

    Parameters
    ----------
    root : float
        Converged root value xi*
    residual : AdArray or float
        R(xi*, p) evaluated with xi* held constant and p carrying sensitivities
    dresidual : float
        dR/dxi at the root

    Returns
    -------
    AdArray or float
        xi* with d xi*/d p = -(dR/dxi)^-1 * dR/dp
    """
    if not isinstance(residual, AdArray):
        return root
    return AdArray(root, -residual.jac / dresidual)
