from segmao.lib.second_order import second_order_coefficients


class ControlPreset():
    '''Named parameter set of a mirror control stage

    *pole* [Hz] and *damping* describe the actuator dynamics, whose
    discrete state-space coefficients *a*, *b*, *c*, *d* are tabulated
    for a 1 kHz loop. *integration* is the number of samples averaged
    before the integrator/proportional gain is applied, *latency* the
    pure delay in samples.
    '''
    def __init__(self, name, pole, damping, integration, latency, gain, a, b, c, d):
        self.name = name
        self.pole = pole
        self.damping = damping
        self.integration = integration
        self.latency = latency
        self.gain = gain
        self.a = tuple(a)
        self.b = tuple(b)
        self.c = tuple(c)
        self.d = d

    @property
    def ss(self):
        return self.a, self.b, self.c, self.d

    @classmethod
    def from_dynamics(cls, name, pole, damping, integration, latency, gain, sampling_frequency=1000.):
        '''Preset whose coefficients are computed from *pole* and *damping*'''
        a, b, c, d = second_order_coefficients(pole, damping, sampling_frequency)
        return cls(name, pole, damping, integration, latency, gain, a, b, c, d)

    def __repr__(self):
        return (f'ControlPreset({self.name!r}, pole={self.pole}, damping={self.damping}, '
                f'integration={self.integration}, latency={self.latency}, gain={self.gain})')


_ASM_A = [-0.95910647, -0.31990701, 1., 0.]
_ASM_B = [1., 0.]
_ASM_C = [0.5930526, 0.38748527]
_ASM_D = 0.56975337

PRESETS = {
    'fsm': ControlPreset('fsm', pole=25., damping=0.6, integration=5, latency=6, gain=0.3,
                         a=[1.80628279, -0.82870523, 1., 0.],
                         b=[1., 0.],
                         c=[0.02133653, 0.00096021],
                         d=0.00560561),
    'asm': ControlPreset('asm', pole=800., damping=0.75, integration=2, latency=1, gain=0.4,
                         a=_ASM_A, b=_ASM_B, c=_ASM_C, d=_ASM_D),
    'piston_optical_sensor': ControlPreset('piston_optical_sensor', pole=800., damping=0.75,
                                           integration=30000, latency=6, gain=0.5,
                                           a=_ASM_A, b=_ASM_B, c=_ASM_C, d=_ASM_D),
    'piston_edge_sensor': ControlPreset('piston_edge_sensor', pole=800., damping=0.75,
                                        integration=2, latency=0, gain=0.8,
                                        a=_ASM_A, b=_ASM_B, c=_ASM_C, d=_ASM_D),
}


def get_preset(name):
    try:
        return PRESETS[name]
    except KeyError:
        raise KeyError(f'Unknown control preset {name}, must be one of {list(PRESETS)}') from None
