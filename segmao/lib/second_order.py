import numpy as np
from scipy.signal import cont2discrete, tf2ss


def second_order_coefficients(pole, damping, sampling_frequency=1000.):
    '''
    Discrete state-space coefficients of the unit-gain second order low-pass

            w**2
    --------------------   with w = 2*pi*pole
    s**2 + 2*z*w*s + w**2

    discretized with the bilinear transform and written in controllable
    canonical form.

    Parameters:
    pole (float): natural frequency [Hz]
    damping (float): damping ratio
    sampling_frequency (float, optional): [Hz]

    Returns:
    tuple: (a, b, c, d) with a the 4 elements of A in row-major order,
           b and c the 2 elements of B and C and d the scalar D, as
           used by StateSpace2x2
    '''
    if pole <= 0:
        raise ValueError(f'Pole must be positive, got {pole}')
    if damping <= 0:
        raise ValueError(f'Damping must be positive, got {damping}')
    if sampling_frequency <= 0:
        raise ValueError(f'Sampling frequency must be positive, got {sampling_frequency}')

    w = 2 * np.pi * pole
    num = [w * w]
    den = [1.0, 2 * damping * w, w * w]
    numd, dend, _ = cont2discrete((num, den), 1.0 / sampling_frequency, method='bilinear')
    A, B, C, D = tf2ss(np.atleast_2d(numd)[0], dend)

    a = [float(x) for x in A.ravel()]
    b = [float(x) for x in B.ravel()]
    c = [float(x) for x in C.ravel()]
    d = float(np.asarray(D).ravel()[0])
    return a, b, c, d
