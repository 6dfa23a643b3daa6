import numpy as np
from astropy.io import fits

from segmao import cpuArray
from segmao.base_data_obj import BaseDataObj
from segmao.data_objects.pinv import PseudoInverse
from segmao.lib.pseudo_inverse import pseudo_inverse


class PokeMatrix(BaseDataObj):
    '''Finite-difference Jacobian from DOF perturbations to sensor measurements

    Rows are the valid sensor elements selected by *mask*,
    columns the perturbed DOFs, in poke specification order.
    '''
    def __init__(self,
                 poke,
                 mask=None,
                 segment_counts=None,
                 target_device_idx=None,
                 precision=None):
        super().__init__(target_device_idx=target_device_idx, precision=precision)
        self.poke = self.xp.asarray(poke, dtype=self.dtype)
        if self.poke.ndim != 2:
            raise ValueError(f'Poke matrix must be 2D, got shape {self.poke.shape}')
        if mask is not None:
            mask = self.xp.asarray(mask, dtype=bool)
            if int(mask.sum()) != self.poke.shape[0]:
                raise ValueError(f'Mask selects {int(mask.sum())} elements but the poke matrix has {self.poke.shape[0]} rows')
        self.mask = mask
        if segment_counts is not None:
            segment_counts = [int(x) for x in segment_counts]
            if sum(segment_counts) != self.poke.shape[1]:
                raise ValueError(f'Segment DOF counts {segment_counts} do not add up to {self.poke.shape[1]} columns')
        self.segment_counts = segment_counts

    @property
    def n_data(self):
        return self.poke.shape[0]

    @property
    def n_mode(self):
        return self.poke.shape[1]

    def generate_pinv(self, tolerance=0.0, left=None, right=None, verbose=False):
        pinv, _, singular_values = pseudo_inverse(self.poke, tolerance=tolerance,
                                                  xp=self.xp, verbose=verbose)
        result = PseudoInverse(pinv, singular_values=singular_values, tolerance=tolerance,
                               target_device_idx=self.target_device_idx, precision=self.precision)
        if left is not None or right is not None:
            result = result.transform(left, right)
        return result

    def save(self, filename, hdr=None):
        if hdr is None:
            hdr = self.get_fits_header()
        fits.writeto(filename, cpuArray(self.poke), hdr, overwrite=True)
        if self.mask is not None:
            fits.append(filename, cpuArray(self.mask).astype(np.uint8), fits.Header([('EXTNAME', 'MASK')]))
        if self.segment_counts is not None:
            fits.append(filename, np.array(self.segment_counts, dtype=np.int32), fits.Header([('EXTNAME', 'COUNTS')]))

    @staticmethod
    def restore(filename, target_device_idx=None):
        with fits.open(filename) as hdul:
            hdr = hdul[0].header
            version = int(hdr['VERSION'])
            if version != 1:
                raise ValueError(f"Error: unknown version {version} in file {filename}")
            names = [h.name for h in hdul]
            mask = hdul['MASK'].data.astype(bool) if 'MASK' in names else None
            counts = hdul['COUNTS'].data.tolist() if 'COUNTS' in names else None
            obj = PokeMatrix(np.array(hdul[0].data, dtype=np.float64), mask=mask, segment_counts=counts,
                             target_device_idx=target_device_idx)
            obj.read_fits_header(hdr)
        return obj
