import numpy as np

from segmao.errors import SensorUnavailable


class ValidElementMask():
    '''Policy selecting the sensor elements used by a calibration

    - ``all``: every element of the sensor
    - ``threshold``: the sensor's own elements with a relative flux
      above *flux_threshold*
    - ``other_sensor``: the valid elements of another, already
      calibrated, sensor
    '''
    POLICIES = ('all', 'threshold', 'other_sensor')

    def __init__(self, policy, flux_threshold=None, sensor=None):
        if policy not in self.POLICIES:
            raise ValueError(f'Unknown valid element policy {policy}, must be one of {self.POLICIES}')
        if policy == 'threshold' and flux_threshold is None:
            raise ValueError('The threshold policy needs a flux threshold')
        if policy == 'other_sensor' and sensor is None:
            raise ValueError('The other_sensor policy needs a sensor')
        self.policy = policy
        self.flux_threshold = flux_threshold
        self.sensor = sensor

    @classmethod
    def all(cls):
        return cls('all')

    @classmethod
    def threshold(cls, flux_threshold):
        return cls('threshold', flux_threshold=flux_threshold)

    @classmethod
    def other_sensor(cls, sensor):
        return cls('other_sensor', sensor=sensor)

    def resolve(self, sensor_model, xp=np):
        '''
        Returns the boolean mask over the measurement elements
        of *sensor_model*.
        '''
        n = sensor_model.n_measurement
        if self.policy == 'all':
            mask = xp.ones(n, dtype=bool)
        elif self.policy == 'threshold':
            mask = sensor_model.valid_element_mask(self.flux_threshold)
        else:
            mask = self.sensor.valid_element_mask()

        if mask is None:
            raise SensorUnavailable(f'{self} cannot provide a valid element mask: sensor is not calibrated')
        mask = xp.asarray(mask, dtype=bool).ravel()
        if mask.size != n:
            raise SensorUnavailable(f'{self}: mask has {mask.size} elements but the sensor measures {n}')
        if not bool(mask.any()):
            raise SensorUnavailable(f'{self}: no valid element')
        return mask

    def __repr__(self):
        if self.policy == 'threshold':
            return f'ValidElementMask(threshold={self.flux_threshold})'
        return f'ValidElementMask({self.policy})'
