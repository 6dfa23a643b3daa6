from segmao.base_processing_obj import BaseProcessingObj
from segmao.base_value import BaseValue
from segmao.connections import InputValue
from segmao.data_objects.control_preset import get_preset
from segmao.errors import WiringError
from segmao.lib.control_primitives import Average, Delay, StateSpace2x2
from segmao.lib.second_order import second_order_coefficients


class ControlStage(BaseProcessingObj):
    '''Chain of control primitives run once per tick

    The input vector goes through *primitives* in order. When a primitive
    does not emit, the next one is not stepped: if it holds a value
    (it has a last() method) that value continues down the chain,
    otherwise the stage emits nothing on this tick.

    *output_decimation* is the number of input ticks per output sample,
    as declared to the scheduler.
    '''
    def __init__(self,
                 n_data: int,
                 primitives: list=None,
                 output_decimation: int=1,
                 target_device_idx=None,
                 precision=None):
        super().__init__(target_device_idx=target_device_idx, precision=precision)
        if n_data < 1:
            raise ValueError(f'{type(self).__name__}: n_data must be >= 1, got {n_data}')
        if output_decimation < 1:
            raise ValueError(f'{type(self).__name__}: output_decimation must be >= 1, got {output_decimation}')
        self.n_data = int(n_data)
        self.output_decimation = int(output_decimation)
        self.primitives = []
        for primitive in primitives or []:
            self.append(primitive)

        self.out_value = BaseValue(f'output of {type(self).__name__}',
                                   value=self.xp.zeros(self.n_data, dtype=self.dtype),
                                   target_device_idx=target_device_idx)
        self.inputs['in_value'] = InputValue(type=BaseValue)
        self.outputs['out_value'] = self.out_value

    def append(self, primitive):
        if primitive.n_data != self.n_data:
            raise WiringError(f'{type(self).__name__}: {type(primitive).__name__} has {primitive.n_data} channels, '
                              f'stage has {self.n_data}')
        self.primitives.append(primitive)

    def reset(self):
        for primitive in self.primitives:
            primitive.reset()

    def run_chain(self, u, primitives):
        value = u
        i = 0
        while i < len(primitives):
            output = primitives[i].step(value)
            if output is None:
                if i + 1 < len(primitives) and hasattr(primitives[i + 1], 'last'):
                    value = primitives[i + 1].last()
                    i += 2
                    continue
                return None
            value = output
            i += 1
        return value

    def step(self, u):
        return self.run_chain(u, self.primitives)

    def setup(self, loop_dt, loop_niters):
        try:
            super().setup(loop_dt, loop_niters)
        except ValueError as e:
            raise WiringError(str(e)) from e

        in_value = self.inputs['in_value'].get(self.target_device_idx)
        if in_value.value is None:
            raise WiringError(f'{type(self).__name__}: input {in_value.description!r} has no value, '
                              f'cannot check it against the {self.n_data} stage channels')
        self.check_size(in_value)

    def check_size(self, in_value):
        size = self.xp.asarray(in_value.value).size
        if size != self.n_data:
            raise WiringError(f'{type(self).__name__}: input {in_value.description!r} has {size} elements, '
                              f'stage expects {self.n_data}')

    def trigger_code(self):
        in_value = self.local_inputs['in_value']
        if in_value.value is None:
            return
        self.check_size(in_value)
        y = self.step(self.xp.asarray(in_value.value, dtype=self.dtype).ravel())
        if y is not None:
            self.out_value.value = y
            self.out_value.generation_time = self.current_time
            if self.verbose:
                print(f'{type(self).__name__}: first {min(6, y.size)} output values: {y[:min(6, y.size)]}')


class SecondOrderControlStage(ControlStage):
    '''
    Average -> gain stage -> Delay -> StateSpace2x2, the gain stage
    being provided by the derived class.
    If *ss* = (a, b, c, d) is not given, it is computed from *pole*
    and *damping* at *sampling_frequency*.
    '''
    def __init__(self,
                 n_data: int,
                 pole: float,
                 damping: float,
                 integration: int,
                 latency: int,
                 gain,
                 ss: tuple=None,
                 sampling_frequency: float=1000.,
                 output_decimation: int=1,
                 target_device_idx=None,
                 precision=None):
        super().__init__(n_data, output_decimation=output_decimation,
                         target_device_idx=target_device_idx, precision=precision)
        if ss is None:
            ss = second_order_coefficients(pole, damping, sampling_frequency)
        a, b, c, d = ss
        self.pole = pole
        self.damping = damping

        kwargs = dict(target_device_idx=target_device_idx, precision=precision)
        self.average = Average(integration, n_data, **kwargs)
        self.gain_stage = self.make_gain_stage(gain, n_data, **kwargs)
        self.delay = Delay(latency, n_data, **kwargs)
        self.dynamics = StateSpace2x2(a, b, c, d, n_data, **kwargs)
        for primitive in [self.average, self.gain_stage, self.delay, self.dynamics]:
            self.append(primitive)

    def make_gain_stage(self, gain, n_data, **kwargs):
        raise NotImplementedError

    @classmethod
    def from_preset(cls, name, n_data, **kwargs):
        preset = get_preset(name)
        return cls(n_data,
                   pole=preset.pole,
                   damping=preset.damping,
                   integration=preset.integration,
                   latency=preset.latency,
                   gain=preset.gain,
                   ss=preset.ss,
                   **kwargs)

    @classmethod
    def fsm(cls, n_data, **kwargs):
        return cls.from_preset('fsm', n_data, **kwargs)

    @classmethod
    def asm(cls, n_data, **kwargs):
        return cls.from_preset('asm', n_data, **kwargs)

    @classmethod
    def piston_optical_sensor(cls, n_data, **kwargs):
        return cls.from_preset('piston_optical_sensor', n_data, **kwargs)

    @classmethod
    def piston_edge_sensor(cls, n_data, **kwargs):
        return cls.from_preset('piston_edge_sensor', n_data, **kwargs)
