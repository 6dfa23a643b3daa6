'''
Discrete-time control primitives.

Each primitive owns its state and exposes step(u), returning the
output vector, or None when it does not emit on this call.
Sizes are checked once, when a control stage is wired; step()
itself never raises.
'''
from numba import jit

from segmao.base_time_obj import BaseTimeObj


def state_space_update(u, x0, x1, a0, a1, a2, a3, b0, b1, c0, c1, d):
    '''
    The output is computed from the state before the update.
    '''
    y = c0 * x0 + c1 * x1 + d * u
    new_x0 = a0 * x0 + a1 * x1 + b0 * u
    new_x1 = a2 * x0 + a3 * x1 + b1 * u
    return y, new_x0, new_x1


state_space_update_jit = jit(state_space_update, nopython=True, cache=True)


class ControlPrimitive(BaseTimeObj):
    def __init__(self, n_data, target_device_idx=None, precision=None):
        super().__init__(target_device_idx=target_device_idx, precision=precision)
        if n_data < 1:
            raise ValueError(f'{type(self).__name__}: n_data must be >= 1, got {n_data}')
        self.n_data = int(n_data)

    def _gain(self, gain):
        gain = self.xp.asarray(gain, dtype=self.dtype)
        if gain.ndim > 0 and gain.shape != (self.n_data,):
            raise ValueError(f'{type(self).__name__}: gain vector of length {gain.size} '
                             f'does not match n_data={self.n_data}')
        return gain

    def step(self, u):
        raise NotImplementedError

    def reset(self):
        raise NotImplementedError


class Average(ControlPrimitive):
    '''Mean of n_sample consecutive inputs, emitted every n_sample calls'''

    def __init__(self, n_sample, n_data, target_device_idx=None, precision=None):
        super().__init__(n_data, target_device_idx=target_device_idx, precision=precision)
        if n_sample < 1:
            raise ValueError(f'Average: n_sample must be >= 1, got {n_sample}')
        self.n_sample = int(n_sample)
        self.reset()

    def reset(self):
        self.sum = self.xp.zeros(self.n_data, dtype=self.dtype)
        self.counter = 0

    def step(self, u):
        self.sum += u
        self.counter += 1
        if self.counter == self.n_sample:
            mean = self.sum / self.n_sample
            self.reset()
            return mean
        return None


class Integrate(ControlPrimitive):
    def __init__(self, gain, n_data, target_device_idx=None, precision=None):
        super().__init__(n_data, target_device_idx=target_device_idx, precision=precision)
        self.gain = self._gain(gain)
        self.reset()

    def reset(self):
        self.mem = self.xp.zeros(self.n_data, dtype=self.dtype)

    def last(self):
        return self.mem.copy()

    def step(self, u):
        self.mem += self.gain * u
        return self.last()


class Proportional(ControlPrimitive):
    def __init__(self, gain, n_data, target_device_idx=None, precision=None):
        super().__init__(n_data, target_device_idx=target_device_idx, precision=precision)
        self.gain = self._gain(gain)
        self.reset()

    def reset(self):
        self.mem = self.xp.zeros(self.n_data, dtype=self.dtype)

    def last(self):
        return self.mem.copy()

    def step(self, u):
        self.mem = self.gain * self.xp.asarray(u, dtype=self.dtype)
        return self.last()


class Delay(ControlPrimitive):
    '''Pure delay of n_sample calls, zero-filled at start'''

    def __init__(self, n_sample, n_data, target_device_idx=None, precision=None):
        super().__init__(n_data, target_device_idx=target_device_idx, precision=precision)
        if n_sample < 0:
            raise ValueError(f'Delay: n_sample must be >= 0, got {n_sample}')
        self.n_sample = int(n_sample)
        self.reset()

    def reset(self):
        self.mem = self.xp.zeros((self.n_sample + 1, self.n_data), dtype=self.dtype)
        self.head = 0

    def step(self, u):
        self.mem[self.head] = u
        self.head = (self.head + 1) % (self.n_sample + 1)
        return self.mem[self.head].copy()


class StateSpace2x2(ControlPrimitive):
    '''Second order single-input single-output system, applied channel by channel

    x' = A x + B u
    y  = C x + D u

    with A = [[a0, a1], [a2, a3]], B = [b0, b1], C = [c0, c1].
    '''
    def __init__(self, a, b, c, d, n_data, target_device_idx=None, precision=None):
        super().__init__(n_data, target_device_idx=target_device_idx, precision=precision)
        if len(a) != 4 or len(b) != 2 or len(c) != 2:
            raise ValueError('StateSpace2x2 needs 4 a, 2 b and 2 c coefficients')
        self.a = tuple(float(x) for x in a)
        self.b = tuple(float(x) for x in b)
        self.c = tuple(float(x) for x in c)
        self.d = float(d)
        if self.target_device_idx >= 0:
            self._update = state_space_update
        else:
            self._update = state_space_update_jit
        self.reset()

    def reset(self):
        self.x0 = self.xp.zeros(self.n_data, dtype=self.dtype)
        self.x1 = self.xp.zeros(self.n_data, dtype=self.dtype)

    @property
    def state(self):
        return self.x0.copy(), self.x1.copy()

    def step(self, u):
        u = self.xp.asarray(u, dtype=self.dtype)
        y, self.x0, self.x1 = self._update(u, self.x0, self.x1, *self.a, *self.b, *self.c, self.d)
        return y
