import numpy as np

RBM_SIZE = 6    # Tx, Ty, Tz, Rx, Ry, Rz


def rxy_to_rbm(rxy, xp=np, dtype=None):
    '''
    Maps tip-tilt pairs [rx0, ry0, rx1, ry1, ...], one per segment,
    to the flat rigid body motion vector [0, 0, 0, rx0, ry0, 0, 0, 0, 0, rx1, ...]
    '''
    rxy = xp.asarray(rxy, dtype=dtype).ravel()
    if rxy.size % 2 != 0:
        raise ValueError(f'Tip-tilt vector must have an even length, got {rxy.size}')
    n_segment = rxy.size // 2
    rbm = xp.zeros((n_segment, RBM_SIZE), dtype=rxy.dtype)
    rbm[:, 3:5] = rxy.reshape(n_segment, 2)
    return rbm.ravel()
