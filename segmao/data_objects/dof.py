
MIRRORS = ('M1', 'M2', 'M1MODES')
MOTIONS = ('Txyz', 'Rxyz', 'Modes')


class DegreeOfFreedom():
    '''Perturbation of one motion component of a mirror segment

    *motion* is one of ``Txyz`` (translations), ``Rxyz`` (rotations)
    or ``Modes`` (bending modes). Translations and rotations span the
    3 axes unless *index_range* restricts them, e.g. ``(0, 2)`` for x and y;
    modes always need an *index_range*.
    '''
    def __init__(self, mirror: str, motion: str, amplitude: float, index_range=None):
        if mirror not in MIRRORS:
            raise ValueError(f'Unknown mirror {mirror}, must be one of {MIRRORS}')
        if motion not in MOTIONS:
            raise ValueError(f'Unknown motion {motion}, must be one of {MOTIONS}')
        if amplitude == 0:
            raise ValueError('Perturbation amplitude must not be zero')

        if index_range is None:
            if motion == 'Modes':
                raise ValueError('Modes perturbations need an index range')
            index_range = (0, 3)
        start, stop = (int(x) for x in index_range)
        if start < 0 or stop <= start:
            raise ValueError(f'Invalid index range {index_range}')
        if motion != 'Modes' and stop > 3:
            raise ValueError(f'{motion} index range {index_range} exceeds the 3 axes')

        self.mirror = mirror
        self.motion = motion
        self.amplitude = float(amplitude)
        self.index_range = (start, stop)

    @classmethod
    def txyz(cls, amplitude, index_range=None, mirror='M1'):
        return cls(mirror, 'Txyz', amplitude, index_range)

    @classmethod
    def rxyz(cls, amplitude, index_range=None, mirror='M1'):
        return cls(mirror, 'Rxyz', amplitude, index_range)

    @classmethod
    def modes(cls, amplitude, index_range, mirror='M1MODES'):
        return cls(mirror, 'Modes', amplitude, index_range)

    @classmethod
    def from_params(cls, params):
        '''Builds from a dictionary like {"mirror": "M2", "motion": "Rxyz", "amplitude": 1e-6, "range": [0, 2]}'''
        return cls(params['mirror'], params['motion'], params['amplitude'], params.get('range'))

    @property
    def n_dof(self):
        return self.index_range[1] - self.index_range[0]

    def indices(self):
        return range(*self.index_range)

    def components(self):
        for idx in self.indices():
            yield (self.mirror, self.motion, idx)

    def __eq__(self, other):
        if not isinstance(other, DegreeOfFreedom):
            return NotImplemented
        return (self.mirror, self.motion, self.amplitude, self.index_range) == \
               (other.mirror, other.motion, other.amplitude, other.index_range)

    def __repr__(self):
        return f'DegreeOfFreedom({self.mirror}, {self.motion}, {self.amplitude:g}, {self.index_range})'
