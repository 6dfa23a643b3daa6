

import segmao
segmao.init(0)  # Default target device

import unittest

import numpy as np

from segmao import cpuArray
from segmao.errors import InversionFailed
from segmao.lib.pseudo_inverse import compose, condition_number, pseudo_inverse, svd_diagnostics
from segmao.data_objects.poke_matrix import PokeMatrix

from test.segmao_testlib import cpu_and_gpu


class TestPseudoInverse(unittest.TestCase):

    def setUp(self):
        rng = np.random.default_rng(1234)
        self.square = rng.standard_normal((6, 6)) + 6 * np.identity(6)
        self.tall = rng.standard_normal((20, 5))
        self.left = rng.standard_normal((3, 5))
        self.right = rng.standard_normal((20, 4))

    @cpu_and_gpu
    def test_square_round_trip(self, target_device_idx, xp):
        m = xp.array(self.square)
        pinv, cond, _ = pseudo_inverse(m, xp=xp)

        err = np.abs(cpuArray(pinv @ m) - np.identity(6)).max()
        assert err < 1e-12 * cond

    @cpu_and_gpu
    def test_tall_matrix_left_inverse(self, target_device_idx, xp):
        m = xp.array(self.tall)
        pinv, _, _ = pseudo_inverse(m, xp=xp)

        assert pinv.shape == (5, 20)
        np.testing.assert_allclose(cpuArray(pinv @ m), np.identity(5), atol=1e-10)
        np.testing.assert_allclose(cpuArray(pinv), np.linalg.pinv(self.tall), atol=1e-10)

    @cpu_and_gpu
    def test_condition_number_matches_independent_svd(self, target_device_idx, xp):
        s, cond = svd_diagnostics(xp.array(self.tall), xp=xp)
        ref = np.linalg.svd(self.tall, compute_uv=False)

        assert cond >= 1
        np.testing.assert_allclose(cpuArray(s), ref)
        np.testing.assert_allclose(cond, ref[0] / ref[-1])
        np.testing.assert_allclose(cond, np.linalg.cond(self.tall))

    def test_condition_number_of_rank_deficient(self):
        assert condition_number(np.array([2.0, 1.0, 0.0])) == float('inf')

    def test_rank_deficient_is_inverted_anyway(self):
        m = np.array([[1.0, 2.0], [2.0, 4.0], [0.0, 0.0]])
        pinv, cond, _ = pseudo_inverse(m, tolerance=1e-10)

        assert cond > 1e10
        np.testing.assert_allclose(pinv, np.linalg.pinv(m), atol=1e-8)

    def test_tolerance_discards_small_singular_values(self):
        m = np.diag([10.0, 1.0, 1e-3])
        pinv, _, _ = pseudo_inverse(m, tolerance=1e-2)
        np.testing.assert_allclose(pinv, np.diag([0.1, 1.0, 0.0]))

        pinv, _, _ = pseudo_inverse(m)
        np.testing.assert_allclose(pinv, np.diag([0.1, 1.0, 1e3]))

    def test_negative_tolerance(self):
        with self.assertRaises(ValueError):
            pseudo_inverse(self.square, tolerance=-1)

    def test_all_zero_matrix_fails(self):
        with self.assertRaises(InversionFailed):
            pseudo_inverse(np.zeros((4, 3)))

    def test_empty_matrix_fails(self):
        with self.assertRaises(InversionFailed):
            pseudo_inverse(np.zeros((4, 0)))

    def test_non_finite_matrix_fails(self):
        m = self.square.copy()
        m[2, 3] = np.nan
        with self.assertRaises(InversionFailed):
            pseudo_inverse(m)

    @cpu_and_gpu
    def test_composition_order(self, target_device_idx, xp):
        m = xp.array(self.tall)
        left = xp.array(self.left)
        right = xp.array(self.right)
        p, _, _ = pseudo_inverse(m, xp=xp)

        p_left, _, _ = pseudo_inverse(m, left=left, xp=xp)
        p_right, _, _ = pseudo_inverse(m, right=right, xp=xp)
        p_both, _, _ = pseudo_inverse(m, left=left, right=right, xp=xp)

        np.testing.assert_allclose(cpuArray(p_left), cpuArray(left @ p))
        np.testing.assert_allclose(cpuArray(p_right), cpuArray(p @ right))
        np.testing.assert_allclose(cpuArray(p_both), cpuArray(left @ p @ right))
        assert p_both.shape == (3, 4)

    def test_composition_is_not_commutative(self):
        l = np.array([[1.0, 2.0, 0.0], [0.0, 1.0, -1.0]])        # 2x3
        r = np.array([[2.0, 0.0], [1.0, 1.0], [0.0, 3.0]])       # 3x2
        p3 = np.array([[1.0, 0.5, 0.0], [-1.0, 2.0, 1.0], [0.0, 1.0, 1.0]])
        p2 = np.array([[1.0, 0.5], [-1.0, 2.0]])

        lpr = compose(p3, left=l, right=r)
        rpl = compose(p2, left=r, right=l)

        np.testing.assert_allclose(lpr, l @ p3 @ r)
        np.testing.assert_allclose(rpl, r @ p2 @ l)
        assert lpr.shape == (2, 2)
        assert rpl.shape == (3, 3)

        # Swapped transforms do not fit the 3x3 pseudo-inverse
        with self.assertRaises(ValueError):
            compose(p3, left=r, right=l)

    def test_composition_with_square_transforms_is_not_commutative(self):
        l = np.array([[1.0, 2.0, 0.0], [0.0, 1.0, -1.0], [3.0, 0.0, 1.0]])
        r = np.array([[2.0, 0.0, 1.0], [1.0, 1.0, 0.0], [0.0, 3.0, -2.0]])
        pinv = np.array([[1.0, 0.5, 0.0], [-1.0, 2.0, 1.0], [0.0, 1.0, 1.0]])

        lpr = compose(pinv, left=l, right=r)
        rpl = compose(pinv, left=r, right=l)

        np.testing.assert_allclose(lpr, l @ pinv @ r)
        np.testing.assert_allclose(rpl, r @ pinv @ l)
        assert not np.allclose(lpr, rpl)

    def test_composition_fixed_order(self):
        pinv = np.arange(12.0).reshape(3, 4) + 1
        a = np.arange(12.0).reshape(4, 3) - 5
        b = np.arange(6.0).reshape(2, 3) + 2

        np.testing.assert_allclose(compose(pinv, left=b, right=a), b @ pinv @ a)
        with self.assertRaises(ValueError):
            compose(pinv, left=a, right=b)

    def test_composition_shape_mismatch(self):
        with self.assertRaises(ValueError) as context:
            compose(np.zeros((5, 20)), left=np.zeros((3, 4)))
        assert '(3, 4)' in str(context.exception)
        assert '(5, 20)' in str(context.exception)

    @cpu_and_gpu
    def test_poke_matrix_generate_pinv(self, target_device_idx, xp):
        poke = PokeMatrix(xp.array(self.tall), target_device_idx=target_device_idx)
        pinv = poke.generate_pinv(left=xp.array(self.left))

        np.testing.assert_allclose(cpuArray(pinv.pinv), self.left @ np.linalg.pinv(self.tall), atol=1e-10)
        np.testing.assert_allclose(pinv.condition_number, np.linalg.cond(self.tall))
