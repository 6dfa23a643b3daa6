# Shack-Hartmann sensors of the AGWS: lenslet array size and pixels per lenslet
SENSOR_KINDS = {
    'SH24': dict(n_lenslet=24, n_px_lenslet=12, tag='AGWS SH24'),
    'SH48': dict(n_lenslet=48, n_px_lenslet=8, tag='AGWS SH48'),
}

FIDELITIES = ('geometric', 'diffractive')


class ShackHartmannConfig():
    '''Configuration of a set of identical Shack-Hartmann sensors

    *kind* is one of SENSOR_KINDS, *fidelity* one of FIDELITIES.
    There is one sensor per guide star, *n_sensor* in total.
    Lenslets with a relative flux below *flux_threshold* are not valid.
    '''
    def __init__(self, kind: str, fidelity: str='geometric', n_sensor: int=1, flux_threshold: float=0.0):
        if kind not in SENSOR_KINDS:
            raise ValueError(f'Unknown Shack-Hartmann kind {kind}, must be one of {list(SENSOR_KINDS)}')
        if fidelity not in FIDELITIES:
            raise ValueError(f'Unknown Shack-Hartmann fidelity {fidelity}, must be one of {FIDELITIES}')
        if n_sensor < 1:
            raise ValueError(f'n_sensor must be >= 1, got {n_sensor}')
        if not 0 <= flux_threshold < 1:
            raise ValueError(f'flux_threshold must be in [0, 1), got {flux_threshold}')
        self.kind = kind
        self.fidelity = fidelity
        self.n_sensor = int(n_sensor)
        self.flux_threshold = float(flux_threshold)

    @property
    def n_lenslet(self):
        return SENSOR_KINDS[self.kind]['n_lenslet']

    @property
    def n_px_lenslet(self):
        return SENSOR_KINDS[self.kind]['n_px_lenslet']

    @property
    def n_measurement(self):
        '''x and y slopes of every lenslet of every sensor'''
        return 2 * self.n_lenslet * self.n_lenslet * self.n_sensor

    @property
    def tag(self):
        return SENSOR_KINDS[self.kind]['tag']

    @property
    def cache_tag(self):
        return f'{self.kind.lower()}_{self.n_sensor}gs'

    def poker(self):
        '''Geometric twin of this configuration, used to compute the poke matrix'''
        return ShackHartmannConfig(self.kind, 'geometric', self.n_sensor, self.flux_threshold)

    def __eq__(self, other):
        return isinstance(other, ShackHartmannConfig) and \
            (self.kind, self.fidelity, self.n_sensor, self.flux_threshold) == \
            (other.kind, other.fidelity, other.n_sensor, other.flux_threshold)

    def __repr__(self):
        return (f'ShackHartmannConfig({self.kind!r}, {self.fidelity!r}, n_sensor={self.n_sensor}, '
                f'flux_threshold={self.flux_threshold})')


def make_sensor_config(kind, fidelity='geometric', n_sensor=1, flux_threshold=0.0):
    '''Builds a ShackHartmannConfig, accepting case-insensitive names'''
    return ShackHartmannConfig(str(kind).upper(), str(fidelity).lower(), n_sensor, flux_threshold)
