import numpy as np


class GuideStar():
    '''Guide star asterism

    Parameters:
    zenith (list): zenith angles [rad]
    azimuth (list): azimuth angles [rad]
    magnitude (float, optional)
    '''
    def __init__(self, zenith, azimuth, magnitude: float=0.0):
        zenith = [float(x) for x in np.atleast_1d(zenith)]
        azimuth = [float(x) for x in np.atleast_1d(azimuth)]
        if len(zenith) != len(azimuth):
            raise ValueError(f'{len(zenith)} zenith angles but {len(azimuth)} azimuth angles')
        if len(zenith) == 0:
            raise ValueError('A guide star asterism needs at least one source')
        self.zenith = zenith
        self.azimuth = azimuth
        self.magnitude = magnitude

    @classmethod
    def on_axis(cls, magnitude=0.0):
        return cls([0.0], [0.0], magnitude)

    @classmethod
    def off_axis(cls, zenith, azimuth, magnitude=0.0):
        return cls([zenith], [azimuth], magnitude)

    @classmethod
    def on_ring(cls, n_source, rho, magnitude=0.0):
        '''*n_source* stars evenly spaced on a ring of radius *rho* [rad]'''
        if n_source < 1:
            raise ValueError(f'n_source must be >= 1, got {n_source}')
        azimuth = 2 * np.pi * np.arange(n_source) / n_source
        return cls([rho] * n_source, azimuth, magnitude)

    @property
    def n_source(self):
        return len(self.zenith)

    def __repr__(self):
        return f'GuideStar(n_source={self.n_source}, zenith={self.zenith}, azimuth={self.azimuth})'
