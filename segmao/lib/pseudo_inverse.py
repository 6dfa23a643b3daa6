import numpy as np

from segmao.errors import InversionFailed


def _svd(matrix, xp):
    if matrix.ndim != 2 or matrix.size == 0:
        raise InversionFailed(f'Cannot decompose a matrix of shape {matrix.shape}')
    if not bool(xp.all(xp.isfinite(matrix))):
        raise InversionFailed('Matrix contains non-finite values')
    try:
        u, s, vt = xp.linalg.svd(matrix, full_matrices=False)
    except np.linalg.LinAlgError as err:
        raise InversionFailed(f'SVD did not converge: {err}') from err
    if float(s[0]) == 0:
        raise InversionFailed('All singular values are zero')
    return u, s, vt


def condition_number(singular_values):
    '''Ratio of the largest to the smallest singular value (inf if the latter is zero)'''
    max_sv = float(singular_values[0])
    min_sv = float(singular_values[-1])
    if min_sv == 0:
        return float('inf')
    return max_sv / min_sv


def svd_diagnostics(matrix, xp=np):
    '''
    Returns the singular values of *matrix*, in decreasing order,
    and its condition number.
    '''
    _, s, _ = _svd(xp.asarray(matrix), xp)
    return s, condition_number(s)


def compose(pinv, left=None, right=None):
    '''
    Returns left @ pinv @ right, where a missing side is the identity.
    The product is always evaluated left first.
    '''
    result = pinv
    if left is not None:
        if left.shape[1] != result.shape[0]:
            raise ValueError(f'Left transform of shape {left.shape} does not match '
                             f'pseudo-inverse of shape {result.shape}')
        result = left @ result
    if right is not None:
        if result.shape[1] != right.shape[0]:
            raise ValueError(f'Right transform of shape {right.shape} does not match '
                             f'matrix of shape {result.shape}')
        result = result @ right
    return result


def pseudo_inverse(matrix, tolerance=0.0, left=None, right=None, xp=np, verbose=False):
    '''
    Moore-Penrose pseudo-inverse computed with a SVD.

    Singular values smaller or equal to tolerance * max singular value
    are discarded. The condition number is a diagnostic only:
    ill-conditioned matrices are inverted anyway.

    Parameters:
    matrix (array): matrix to invert
    tolerance (float, optional): relative singular value cutoff
    left (array, optional): matrix left-multiplying the pseudo-inverse
    right (array, optional): matrix right-multiplying the pseudo-inverse

    Returns:
    tuple: (pseudo-inverse, condition number, singular values)
    '''
    if tolerance < 0:
        raise ValueError(f'Tolerance must be positive, got {tolerance}')

    u, s, vt = _svd(xp.asarray(matrix), xp)
    cond = condition_number(s)
    if verbose:
        print(f'Poke matrix condition number: {cond:e}')

    cutoff = tolerance * s[0]
    keep = s > cutoff
    s_inv = xp.zeros_like(s)
    s_inv[keep] = 1.0 / s[keep]
    pinv = (vt.T * s_inv) @ u.T

    return compose(pinv, left, right), cond, s
