from segmao.lib.control_primitives import Proportional
from segmao.processing_objects.control_stage import SecondOrderControlStage


class EdgeSensorPistonControl(SecondOrderControlStage):
    '''Segment piston control driven by the edge sensors

    The edge sensor readout is averaged over *integration* ticks and
    scaled by *gain*; between two averages the last scaled value is
    held, then delayed and filtered by the actuator dynamics.
    '''
    def make_gain_stage(self, gain, n_data, **kwargs):
        return Proportional(gain, n_data, **kwargs)

    @property
    def proportional(self):
        return self.gain_stage
