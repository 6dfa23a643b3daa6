import numpy as np
from astropy.io import fits

from segmao import cpuArray
from segmao.base_data_obj import BaseDataObj
from segmao.lib.pseudo_inverse import compose, condition_number


class PseudoInverse(BaseDataObj):
    '''Pseudo-inverse of a poke matrix, from measurements to DOFs

    It can be saved to, and restored from, a FITS file so that
    the calibration can be skipped on later runs.
    '''
    def __init__(self,
                 pinv,
                 singular_values=None,
                 tolerance: float = 0.0,
                 target_device_idx=None,
                 precision=None):
        super().__init__(target_device_idx=target_device_idx, precision=precision)
        self.pinv = self.xp.asarray(pinv, dtype=self.dtype)
        if singular_values is not None:
            singular_values = self.xp.asarray(singular_values, dtype=self.dtype)
        self.singular_values = singular_values
        self.tolerance = tolerance

    @property
    def shape(self):
        return self.pinv.shape

    @property
    def condition_number(self):
        if self.singular_values is None:
            return None
        return condition_number(self.singular_values)

    def transform(self, left=None, right=None):
        '''Returns a new PseudoInverse equal to left @ pinv @ right'''
        if left is not None:
            left = self.xp.asarray(left, dtype=self.dtype)
        if right is not None:
            right = self.xp.asarray(right, dtype=self.dtype)
        return PseudoInverse(compose(self.pinv, left, right),
                             singular_values=self.singular_values,
                             tolerance=self.tolerance,
                             target_device_idx=self.target_device_idx,
                             precision=self.precision)

    def apply(self, values):
        if values.shape[0] != self.pinv.shape[1]:
            raise ValueError(f'Pseudo-inverse of shape {self.pinv.shape} cannot be applied '
                             f'to a vector of length {values.shape[0]}')
        return self.pinv @ values

    def save(self, filename, hdr=None):
        if hdr is None:
            hdr = self.get_fits_header()
        hdr['TOL'] = self.tolerance
        cond = self.condition_number
        if cond is not None and np.isfinite(cond):
            hdr['COND'] = cond

        fits.writeto(filename, cpuArray(self.pinv), hdr, overwrite=True)
        if self.singular_values is not None:
            fits.append(filename, cpuArray(self.singular_values))

    @staticmethod
    def restore(filename, target_device_idx=None):
        with fits.open(filename) as hdul:
            hdr = hdul[0].header
            version = int(hdr['VERSION'])
            if version != 1:
                raise ValueError(f"Error: unknown version {version} in file {filename}")
            pinv = np.array(hdul[0].data, dtype=np.float64)
            singular_values = np.array(hdul[1].data, dtype=np.float64) if len(hdul) >= 2 else None
            obj = PseudoInverse(pinv,
                                singular_values=singular_values,
                                tolerance=float(hdr.get('TOL', 0.0)),
                                target_device_idx=target_device_idx)
            obj.read_fits_header(hdr)
        return obj
