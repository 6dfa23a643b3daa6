

import segmao
segmao.init(0)  # Default target device

import unittest

from segmao import np
from segmao import cpuArray

from segmao.base_value import BaseValue
from segmao.data_objects.measurement import Measurement
from segmao.data_objects.pinv import PseudoInverse
from segmao.errors import WiringError
from segmao.processing_objects.dof_reconstructor import DofReconstructor
from segmao.processing_objects.rxy2rbm import Rxy2Rbm
from segmao.lib.rigid_body import rxy_to_rbm

from test.segmao_testlib import cpu_and_gpu


class TestDofReconstructor(unittest.TestCase):

    @cpu_and_gpu
    def test_reconstruct(self, target_device_idx, xp):
        pinv = PseudoInverse(xp.arange(12).reshape((3, 4)), target_device_idx=target_device_idx)
        rec = DofReconstructor(pinv, target_device_idx=target_device_idx)

        measurement = Measurement(values=xp.arange(4), target_device_idx=target_device_idx)
        measurement.generation_time = 1
        rec.inputs['in_measurement'].set(measurement)
        rec.setup(1, 10)
        rec.check_ready(1)
        rec.trigger()

        np.testing.assert_array_equal(cpuArray(rec.outputs['out_dofs'].value),
                                      np.arange(12).reshape((3, 4)) @ np.arange(4))
        assert rec.outputs['out_dofs'].generation_time == 1

    @cpu_and_gpu
    def test_measurement_list(self, target_device_idx, xp):
        pinv = PseudoInverse(xp.identity(4), target_device_idx=target_device_idx)
        rec = DofReconstructor(pinv, target_device_idx=target_device_idx)

        m1 = Measurement(values=xp.array([1, 2]), target_device_idx=target_device_idx)
        m2 = Measurement(values=xp.array([3, 4]), target_device_idx=target_device_idx)
        m1.generation_time = m2.generation_time = 1
        rec.inputs['in_measurement_list'].set([m1, m2])
        rec.setup(1, 10)
        rec.check_ready(1)
        rec.trigger()

        np.testing.assert_array_equal(cpuArray(rec.outputs['out_dofs'].value), [1, 2, 3, 4])

    @cpu_and_gpu
    def test_masked_measurement(self, target_device_idx, xp):
        pinv = PseudoInverse(xp.identity(2), target_device_idx=target_device_idx)
        rec = DofReconstructor(pinv, mask=xp.array([True, False, False, True]),
                               target_device_idx=target_device_idx)

        np.testing.assert_array_equal(cpuArray(rec.reconstruct(xp.array([1.0, 2.0, 3.0, 4.0]))), [1.0, 4.0])
        with self.assertRaises(ValueError):
            rec.reconstruct(xp.arange(3))

    @cpu_and_gpu
    def test_wrong_size(self, target_device_idx, xp):
        pinv = PseudoInverse(xp.arange(12).reshape((3, 4)), target_device_idx=target_device_idx)
        rec = DofReconstructor(pinv, target_device_idx=target_device_idx)

        with self.assertRaises(ValueError):
            rec.reconstruct(xp.arange(5))

    def test_no_input(self):
        rec = DofReconstructor(PseudoInverse(np.identity(2)))
        with self.assertRaises(ValueError):
            rec.setup(1, 10)

    @cpu_and_gpu
    def test_setup_detects_measurement_size_mismatch(self, target_device_idx, xp):
        pinv = PseudoInverse(xp.identity(4), target_device_idx=target_device_idx)
        rec = DofReconstructor(pinv, target_device_idx=target_device_idx)
        rec.inputs['in_measurement'].set(Measurement(6, target_device_idx=target_device_idx))

        with self.assertRaises(WiringError):
            rec.setup(1, 10)

    @cpu_and_gpu
    def test_setup_checks_length_against_mask(self, target_device_idx, xp):
        pinv = PseudoInverse(xp.identity(2), target_device_idx=target_device_idx)
        rec = DofReconstructor(pinv, mask=xp.array([True, False, False, True]),
                               target_device_idx=target_device_idx)
        rec.inputs['in_measurement'].set(Measurement(4, target_device_idx=target_device_idx))
        rec.setup(1, 10)

        np.testing.assert_array_equal(cpuArray(rec.outputs['out_dofs'].value), np.zeros(2))

    def test_no_pinv(self):
        with self.assertRaises(ValueError):
            DofReconstructor(None)


class TestRxy2Rbm(unittest.TestCase):

    @cpu_and_gpu
    def test_mapping(self, target_device_idx, xp):
        rbm = cpuArray(rxy_to_rbm(xp.array([1.0, 2.0, 3.0, 4.0]), xp=xp))
        np.testing.assert_array_equal(rbm, [0, 0, 0, 1, 2, 0, 0, 0, 0, 3, 4, 0])

    def test_odd_length(self):
        with self.assertRaises(ValueError):
            rxy_to_rbm(np.arange(3.0))

    @cpu_and_gpu
    def test_processing_object(self, target_device_idx, xp):
        obj = Rxy2Rbm(7, target_device_idx=target_device_idx)
        rxy = BaseValue('tip-tilt', value=xp.arange(14.0), target_device_idx=target_device_idx)
        rxy.generation_time = 2
        obj.inputs['in_rxy'].set(rxy)
        obj.setup(1, 10)
        obj.check_ready(2)
        obj.trigger()

        rbm = cpuArray(obj.outputs['out_rbm'].value).reshape(7, 6)
        assert obj.n_data == 42
        np.testing.assert_array_equal(rbm[:, 3:5].ravel(), np.arange(14.0))
        np.testing.assert_array_equal(rbm[:, [0, 1, 2, 5]], 0)

    def test_wrong_input_size(self):
        obj = Rxy2Rbm(7)
        obj.inputs['in_rxy'].set(BaseValue('tip-tilt', value=np.zeros(12)))
        with self.assertRaises(WiringError):
            obj.setup(1, 10)

    def test_source_without_value(self):
        obj = Rxy2Rbm(7)
        obj.inputs['in_rxy'].set(BaseValue('tip-tilt'))
        with self.assertRaises(WiringError):
            obj.setup(1, 10)

    def test_output_has_its_length_before_the_first_tick(self):
        obj = Rxy2Rbm(7)
        np.testing.assert_array_equal(obj.outputs['out_rbm'].value, np.zeros(42))
