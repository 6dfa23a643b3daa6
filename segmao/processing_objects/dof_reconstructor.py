from segmao.base_processing_obj import BaseProcessingObj
from segmao.base_value import BaseValue
from segmao.connections import InputList, InputValue
from segmao.data_objects.measurement import Measurement
from segmao.data_objects.pinv import PseudoInverse
from segmao.errors import WiringError


class DofReconstructor(BaseProcessingObj):
    '''DOF reconstructor

    Projects the wavefront sensor measurement onto the calibrated DOFs
    with a pseudo-inverse. Measurements from several sensors, connected
    to *in_measurement_list*, are concatenated in order.
    If *mask* is given, only the valid elements of the measurement are
    used.
    '''

    def __init__(self,
                 pinv: PseudoInverse,
                 mask=None,
                 target_device_idx=None,
                 precision=None):
        super().__init__(target_device_idx=target_device_idx, precision=precision)

        if pinv is None:
            raise ValueError('DofReconstructor needs a pseudo-inverse')
        self.pinv = pinv
        self.mask = None if mask is None else self.xp.asarray(mask, dtype=bool)

        self.dofs = BaseValue('output DOFs from DOF reconstructor',
                              value=self.xp.zeros(self.pinv.shape[0], dtype=self.dtype),
                              target_device_idx=target_device_idx)
        self.inputs['in_measurement'] = InputValue(type=Measurement, optional=True)
        self.inputs['in_measurement_list'] = InputList(type=Measurement, optional=True)
        self.outputs['out_dofs'] = self.dofs

    def reconstruct(self, values):
        if self.mask is not None:
            if values.size != self.mask.size:
                raise ValueError(f'Measurement has {values.size} elements, valid element mask has {self.mask.size}')
            values = values[self.mask]
        return self.pinv.apply(values)

    def trigger_code(self):
        measurement = self.local_inputs['in_measurement']
        measurement_list = self.local_inputs['in_measurement_list']
        if measurement is None:
            values = self.xp.hstack([x.values for x in measurement_list])
        else:
            values = measurement.values

        self.dofs.value = self.reconstruct(values)
        self.dofs.generation_time = self.current_time
        if self.verbose:
            n = self.dofs.value.size
            print(f'first {min(6, n)} DOF values: {self.dofs.value[:min(6, n)]}')

    def setup(self, loop_dt, loop_niters):
        super().setup(loop_dt, loop_niters)

        measurement = self.inputs['in_measurement'].get(self.target_device_idx)
        measurement_list = self.inputs['in_measurement_list'].get(self.target_device_idx)
        if measurement is None and not measurement_list:
            raise ValueError("Either 'in_measurement' or 'in_measurement_list' must be given as an input")

        if measurement is None:
            size = sum(x.size for x in measurement_list)
        else:
            size = measurement.size
        expected = self.pinv.shape[1] if self.mask is None else self.mask.size
        if size != expected:
            raise WiringError(f'DofReconstructor: input measurements have {size} elements, expected {expected}')
