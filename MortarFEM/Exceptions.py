import os
import warnings


def custom_warning_format(message, category, filename, lineno, file=None, line=None):
    file_short_name = filename.replace(os.path.dirname(filename), "")
    file_short_name = file_short_name.replace("\\", "").replace("/", "")
    return f"Warning! In file {file_short_name}, line {lineno}: {message}\n"


warnings.formatwarning = custom_warning_format


class MortarConfigurationError(ValueError):
    """Raised when the interface input is invalid and must be fixed by the user.

    Typical causes:
    - Malformed connectivity or unknown element family
    - Empty slave element set
    - Invalid configuration values (gap sign, tolerances, policies)
    - Slave elements whose tangents cancel at a shared node
    """
    pass


class ConvergenceError(RuntimeError):
    """Raised when an iterative procedure fails to converge within its budget.

    This typically indicates:
    - Load step too large (reduce step size)
    - Active set cycling near a contact transition
    """
    pass


class ProjectionError(ConvergenceError):
    """Raised when a contact point projection is not allowed to fail.

    The message carries the inputs and the last Newton iterate.
    """
    pass


class SingularSystemError(RuntimeError):
    """Raised when the coupled (u, lambda) system cannot be solved.

    This typically indicates:
    - Insufficient boundary conditions (rigid body modes)
    - Multiplier dofs without any constraint row
    """
    pass


class GeometricDegeneracyWarning(UserWarning):
    """Expected, non-fatal degeneracy: the affected slave/master pair is skipped."""
    pass
