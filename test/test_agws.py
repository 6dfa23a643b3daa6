

import segmao
segmao.init(0)  # Default target device

import tempfile
import unittest

from segmao import np

from segmao.agws import AGWS, AgwsShackHartmann
from segmao.calib_manager import CalibManager
from segmao.data_objects.dof import DegreeOfFreedom
from segmao.data_objects.guide_star import GuideStar
from segmao.data_objects.poke_spec import PokeSpecification
from segmao.errors import OpticalModelBuildFailed
from segmao.lib.valid_mask import ValidElementMask
from segmao.sensor_model import LinearSensorModel

N_DOF = 14


class LinearModelBuilder():
    '''Builds linear sensor models seeing the M2 segment tip-tilt'''

    def __init__(self):
        self.rng = np.random.default_rng(7)
        self.spec = PokeSpecification.uniform([DegreeOfFreedom.rxyz(1e-6, (0, 2), mirror='M2')])
        self.matrices = {}
        self.calls = []

    def __call__(self, config, guide_star, options):
        self.calls.append((config, guide_star, options))
        n = config.n_measurement
        if n not in self.matrices:
            self.matrices[n] = self.rng.standard_normal((n, N_DOF))
        flux = np.ones(n)
        flux[::4] = 0.1
        return LinearSensorModel.from_matrix(self.matrices[n], self.spec, flux=flux,
                                             flux_threshold=config.flux_threshold)


def failing_builder(config, guide_star, options):
    raise RuntimeError('no GPU available')


class TestAgws(unittest.TestCase):

    def setUp(self):
        self.builder = LinearModelBuilder()
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def sh24(self):
        return AgwsShackHartmann.builder('SH24', 'diffractive', verbose=False) \
            .flux_threshold(0.5) \
            .with_m2_tiptilt()

    def test_build_wfs_installs_pinv(self):
        agws = AGWS(self.builder, verbose=False)
        model = agws.build_wfs(self.sh24())

        n = 2 * 24 * 24
        n_valid = n - len(range(0, n, 4))
        assert model.tag == 'AGWS SH24'
        assert model._pinv.shape == (N_DOF, n_valid)

        model.apply_perturbation((2, 'M2', 'Rxyz', 1), 1e-6)
        expected = np.zeros(N_DOF)
        expected[3] = 1e-6
        np.testing.assert_allclose(model.read_transformed(), expected, atol=1e-12)

    def test_poker_is_geometric_without_options(self):
        agws = AGWS(self.builder, verbose=False).atmosphere('atmosphere.yaml', 1e-3).dome_seeing('b2019_0z_0az_os_7ms', 2)
        agws.build_wfs(self.sh24())

        (config, _, options), (poker_config, _, poker_options) = self.builder.calls
        assert config.fidelity == 'diffractive'
        assert [x['type'] for x in options] == ['atmosphere', 'dome_seeing']
        assert options[0]['time_step'] == 1e-3
        assert poker_config.fidelity == 'geometric'
        assert poker_options == []

    def test_left_and_right_matrices(self):
        left = np.ones((2, N_DOF))
        wfs = self.sh24().left_pinv(left)
        model = AGWS(self.builder, verbose=False).build_wfs(wfs)
        assert model._pinv.shape[0] == 2

        n_valid = model._pinv.shape[1]
        right = np.identity(n_valid)[:, :10]
        wfs = self.sh24().right_pinv(right)
        model = AGWS(self.builder, verbose=False).build_wfs(wfs)
        assert model._pinv.shape == (N_DOF, 10)

    def test_pinv_cache(self):
        cm = CalibManager(self.tmpdir.name)
        first = AGWS(self.builder, verbose=False).build_wfs(self.sh24(), cm)
        assert cm.exists('pinv', 'sh24_1gs')
        assert len(self.builder.calls) == 2

        second = AGWS(self.builder).build_wfs(self.sh24(), cm)
        # No poker model, no calibration
        assert len(self.builder.calls) == 3
        np.testing.assert_allclose(second._pinv.pinv, first._pinv.pinv)

    def test_cache_is_keyed_by_guide_star_count(self):
        cm = CalibManager(self.tmpdir.name)
        AGWS(self.builder, verbose=False).build_wfs(self.sh24(), cm)

        wfs = AgwsShackHartmann.builder('SH24', n_sensor=3, verbose=False) \
            .guide_star(GuideStar.on_ring(3, 6e-3)) \
            .with_m2_tiptilt()
        AGWS(self.builder, verbose=False).build_wfs(wfs, cm)
        assert cm.exists('pinv', 'sh24_3gs')
        assert len(self.builder.calls) == 4

    def test_build(self):
        sh48 = AgwsShackHartmann.builder('SH48', verbose=False).with_m2_tiptilt()
        sh24, sh48 = AGWS(self.builder, verbose=False).build(sh48=sh48)
        assert sh24 is None
        assert sh48.tag == 'AGWS SH48'

        with self.assertRaises(ValueError):
            AGWS(self.builder, verbose=False).build(sh24=AgwsShackHartmann.builder('SH48').with_m2_tiptilt())

    def test_build_failure(self):
        with self.assertRaises(OpticalModelBuildFailed):
            AGWS(failing_builder, verbose=False).build_wfs(self.sh24())
        with self.assertRaises(OpticalModelBuildFailed):
            AGWS(lambda *args: None, verbose=False).build_wfs(self.sh24())

    def test_builder_checks(self):
        agws = AGWS(self.builder, verbose=False)
        with self.assertRaises(ValueError):
            agws.build_wfs(AgwsShackHartmann.builder('SH24', verbose=False))
        wfs = AgwsShackHartmann.builder('SH24', n_sensor=2, verbose=False).with_m2_tiptilt()
        with self.assertRaises(ValueError):
            agws.build_wfs(wfs)

    def test_poke_with(self):
        cm = CalibManager(self.tmpdir.name)
        wfs = AgwsShackHartmann.builder('SH48', n_sensor=3, verbose=False) \
            .guide_star(GuideStar.on_ring(3, 6e-3)) \
            .with_m2_tiptilt()
        poke = AGWS(self.builder, verbose=False).poke_with(wfs, cm)

        assert poke.poke.shape == (2 * 48 * 48 * 3, N_DOF)
        assert cm.exists('poke', 'sh48_3gs')
        restored = AGWS(self.builder, verbose=False).poke_with(wfs, cm)
        np.testing.assert_allclose(restored.poke, poke.poke)
        assert len(self.builder.calls) == 1

    def test_mask_policy_override(self):
        wfs = self.sh24().mask(ValidElementMask.all())
        model = AGWS(self.builder, verbose=False).build_wfs(wfs)
        assert model._pinv.shape == (N_DOF, 2 * 24 * 24)

    def test_poke(self):
        wfs = self.sh24()
        poker = self.builder(wfs.config.poker(), wfs.guide_stars, [])
        pinv = wfs.poke(poker, ValidElementMask.all())
        np.testing.assert_allclose(pinv.pinv, np.linalg.pinv(self.builder.matrices[2 * 24 * 24]), atol=1e-6)
