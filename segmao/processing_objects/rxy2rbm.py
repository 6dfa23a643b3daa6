from segmao.base_processing_obj import BaseProcessingObj
from segmao.base_value import BaseValue
from segmao.connections import InputValue
from segmao.errors import WiringError
from segmao.lib.rigid_body import RBM_SIZE, rxy_to_rbm


class Rxy2Rbm(BaseProcessingObj):
    '''Segment tip-tilt to rigid body motions, e.g. for the FSM loop'''

    def __init__(self, n_segment: int=7, target_device_idx=None, precision=None):
        super().__init__(target_device_idx=target_device_idx, precision=precision)
        self.n_segment = n_segment
        self.rbm = BaseValue('segment rigid body motions',
                             value=self.xp.zeros(self.n_data, dtype=self.dtype),
                             target_device_idx=target_device_idx)
        self.inputs['in_rxy'] = InputValue(type=BaseValue)
        self.outputs['out_rbm'] = self.rbm

    @property
    def n_data(self):
        return self.n_segment * RBM_SIZE

    def trigger_code(self):
        self.rbm.value = rxy_to_rbm(self.local_inputs['in_rxy'].value, xp=self.xp, dtype=self.dtype)
        self.rbm.generation_time = self.current_time

    def setup(self, loop_dt, loop_niters):
        super().setup(loop_dt, loop_niters)
        rxy = self.inputs['in_rxy'].get(self.target_device_idx)
        if rxy.value is None:
            raise WiringError(f'Rxy2Rbm: input {rxy.description!r} has no value, '
                              f'expected {2 * self.n_segment} elements')
        size = self.xp.asarray(rxy.value).size
        if size != 2 * self.n_segment:
            raise WiringError(f'Rxy2Rbm: input {rxy.description!r} has {size} elements, '
                              f'expected {2 * self.n_segment}')
