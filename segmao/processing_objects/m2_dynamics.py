from segmao.lib.control_primitives import Integrate
from segmao.processing_objects.control_stage import SecondOrderControlStage


class M2Dynamics(SecondOrderControlStage):
    '''M2 segment actuator dynamics

    Two update paths are available:

    - step_fast(): the command is only delayed and filtered by the
      actuator dynamics, every tick;
    - step_with_sensor_fusion(): the command is first averaged over
      *integration* ticks and integrated with *gain*; on the ticks where
      the average is not ready the integrator holds its last value.

    *sensor_fusion* selects the path used by step() and by the
    scheduler trigger. Both paths emit on every tick.
    '''
    def __init__(self,
                 n_data: int,
                 pole: float,
                 damping: float,
                 integration: int,
                 latency: int,
                 gain,
                 ss: tuple=None,
                 sensor_fusion: bool=False,
                 sampling_frequency: float=1000.,
                 output_decimation: int=1,
                 target_device_idx=None,
                 precision=None):
        super().__init__(n_data, pole, damping, integration, latency, gain,
                         ss=ss,
                         sampling_frequency=sampling_frequency,
                         output_decimation=output_decimation,
                         target_device_idx=target_device_idx,
                         precision=precision)
        self.sensor_fusion = sensor_fusion

    def make_gain_stage(self, gain, n_data, **kwargs):
        return Integrate(gain, n_data, **kwargs)

    @property
    def integrator(self):
        return self.gain_stage

    def step_fast(self, u):
        return self.dynamics.step(self.delay.step(u))

    def step_with_sensor_fusion(self, u):
        return self.run_chain(u, self.primitives)

    def step(self, u):
        if self.sensor_fusion:
            return self.step_with_sensor_fusion(u)
        return self.step_fast(u)
