import numpy as np

from segmao.base_time_obj import BaseTimeObj
from segmao.data_objects.measurement import Measurement


class BaseSensorModel(BaseTimeObj):
    '''
    Interface of the sensor/optical model driven by the calibration.

    A DOF component is the tuple (segment id, mirror, motion, index),
    segment ids starting at 1.
    '''
    @property
    def n_measurement(self):
        raise NotImplementedError

    def apply_perturbation(self, component, amplitude):
        raise NotImplementedError

    def restore_nominal(self):
        raise NotImplementedError

    def read_measurement(self):
        '''Returns a Measurement of length n_measurement'''
        raise NotImplementedError

    def valid_element_mask(self, flux_threshold=None):
        '''
        Returns the boolean mask of the valid elements, using *flux_threshold*
        or the sensor's own threshold, or None if neither is available.
        '''
        raise NotImplementedError

    def sensor_matrix_transform(self, pinv, mask):
        raise NotImplementedError


class LinearSensorModel(BaseSensorModel):
    '''Sensor with a linear response to DOF perturbations

    measurement = offset + sum(response[component] * amplitude)

    *response* maps DOF components to measurement vectors; components
    missing from it are not seen by the sensor. *flux* is the relative
    illumination of each element, used to select the valid ones.
    '''
    def __init__(self,
                 n_measurement: int,
                 response: dict = None,
                 flux=None,
                 offset=None,
                 flux_threshold: float = None,
                 target_device_idx=None,
                 precision=None):
        super().__init__(target_device_idx=target_device_idx, precision=precision)
        self._n = n_measurement
        self.response = {}
        for component, vector in (response or {}).items():
            vector = self.xp.asarray(vector, dtype=self.dtype)
            if vector.shape != (n_measurement,):
                raise ValueError(f'Response of {component} has shape {vector.shape}, expected ({n_measurement},)')
            self.response[tuple(component)] = vector
        self.flux = self.xp.ones(n_measurement, dtype=self.dtype) if flux is None \
            else self.xp.asarray(flux, dtype=self.dtype)
        self.offset = self.xp.zeros(n_measurement, dtype=self.dtype) if offset is None \
            else self.xp.asarray(offset, dtype=self.dtype)
        self.flux_threshold = flux_threshold
        self._perturbation = {}
        self._pinv = None
        self._mask = None

    @classmethod
    def from_matrix(cls, matrix, poke_spec, **kwargs):
        '''Assigns the columns of *matrix* to the components of *poke_spec*, in order'''
        matrix = np.asarray(matrix)
        if matrix.shape[1] != poke_spec.n_columns:
            raise ValueError(f'Matrix has {matrix.shape[1]} columns, poke specification has {poke_spec.n_columns}')
        response = {}
        col = 0
        for sid, slot in enumerate(poke_spec, start=1):
            if slot is None:
                continue
            for dof in slot:
                for component in dof.components():
                    response[(sid, *component)] = matrix[:, col]
                    col += 1
        return cls(matrix.shape[0], response=response, **kwargs)

    @property
    def n_measurement(self):
        return self._n

    @property
    def perturbation(self):
        return dict(self._perturbation)

    def apply_perturbation(self, component, amplitude):
        component = tuple(component)
        self._perturbation[component] = self._perturbation.get(component, 0.0) + amplitude

    def restore_nominal(self):
        self._perturbation.clear()

    def read_measurement(self):
        values = self.offset.copy()
        for component, amplitude in self._perturbation.items():
            if component in self.response:
                values += self.response[component] * amplitude
        return Measurement(values=values, target_device_idx=self.target_device_idx, precision=self.precision)

    def valid_element_mask(self, flux_threshold=None):
        if flux_threshold is None:
            flux_threshold = self.flux_threshold
        if flux_threshold is None:
            return None
        return (self.flux > 0) & (self.flux >= flux_threshold * self.flux.max())

    def sensor_matrix_transform(self, pinv, mask):
        self._pinv = pinv
        self._mask = self.xp.asarray(mask, dtype=bool)

    def read_transformed(self):
        '''Measurement of the valid elements projected by the installed pseudo-inverse'''
        if self._pinv is None:
            raise ValueError('No sensor matrix transform has been installed')
        return self._pinv.apply(self.read_measurement().values[self._mask])
