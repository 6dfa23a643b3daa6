from copy import copy
from functools import cache

from astropy.io import fits

import segmao
from segmao import np
from segmao.base_time_obj import BaseTimeObj


@cache
def get_properties(cls):
    result = []
    classlist = cls.__mro__
    for cc in classlist:
        result.extend([attr for attr, value in vars(cc).items() if isinstance(value, property)])
    return result


class BaseDataObj(BaseTimeObj):
    def __init__(self, target_device_idx=None, precision=None):
        """
        Initialize the base data object.

        Parameters:
        precision (int, optional):if None will use the global_precision, otherwise pass 0 for double, 1 for single
        """
        super().__init__(target_device_idx, precision)
        self._generation_time = -1

    @property
    def generation_time(self):
        return self._generation_time

    @generation_time.setter
    def generation_time(self, value):
        self._generation_time = value

    def get_fits_header(self):
        hdr = fits.Header()
        hdr['VERSION'] = 1
        hdr['OBJ_TYPE'] = type(self).__name__
        hdr['GEN_TIME'] = self._generation_time
        hdr['TIME_RES'] = self._time_resolution
        return hdr

    def read_fits_header(self, hdr):
        self._generation_time = int(hdr.get('GEN_TIME', -1))
        self._time_resolution = int(hdr.get('TIME_RES', self._time_resolution))

    def copyTo(self, target_device_idx):
        if target_device_idx == self.target_device_idx:
            return self

        cp = segmao.cp
        pp = get_properties(type(self))
        cloned = copy(self)
        for attr, value in vars(self).items():
            if attr in pp:
                continue
            if target_device_idx == -1:
                if cp is not None and isinstance(value, cp.ndarray):
                    setattr(cloned, attr, cp.asnumpy(value))
            elif self.target_device_idx == -1:
                if isinstance(value, np.ndarray):
                    setattr(cloned, attr, cp.asarray(value))
        if target_device_idx >= 0:
            cloned.xp = cp
        else:
            cloned.xp = np
        cloned.target_device_idx = target_device_idx
        return cloned
