import segmao
from segmao import np, cpu_float_dtype_list


class BaseTimeObj:
    def __init__(self, target_device_idx=None, precision=None):
        """
        Creates a new base_time object.

        Parameters:
        precision (int, optional): if None will use the global_precision, otherwise pass 0 for double, 1 for single
        target_device_idx (int, optional): if None will use the default_target_device_idx, otherwise pass -1 for cpu, i for GPU of index i

        """
        self._time_resolution = int(1e9)

        if precision is None:
            self.precision = segmao.global_precision
        else:
            self.precision = precision

        if target_device_idx is None:
            self.target_device_idx = segmao.default_target_device_idx
        else:
            self.target_device_idx = target_device_idx

        if self.target_device_idx >= 0:
            if segmao.cp is None:
                raise ValueError(f'GPU {self.target_device_idx} requested but cupy is not available')
            self._target_device = segmao.cp.cuda.Device(self.target_device_idx)      # GPU case
            self.dtype = segmao.gpu_float_dtype_list[self.precision]
            self.xp = segmao.cp
        else:
            self._target_device = segmao.default_target_device                     # CPU case
            self.dtype = cpu_float_dtype_list[self.precision]
            self.xp = np

    @property
    def time_resolution(self):
        return self._time_resolution

    def t_to_seconds(self, t):
        return float(t) / float(self._time_resolution)
