from segmao.base_data_obj import BaseDataObj


class Measurement(BaseDataObj):
    '''Flat wavefront-sensor readout of the valid elements'''

    def __init__(self, length=None, values=None, target_device_idx=None, precision=None):
        super().__init__(target_device_idx=target_device_idx, precision=precision)
        if values is not None:
            self.values = self.xp.asarray(values, dtype=self.dtype).ravel()
        elif length is not None:
            self.values = self.xp.zeros(length, dtype=self.dtype)
        else:
            raise ValueError('Either length or values must be given')

    @property
    def size(self):
        return self.values.size
