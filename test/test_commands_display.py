

import segmao
segmao.init(0)  # Default target device

import unittest

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from segmao import np
from segmao.base_value import BaseValue
from segmao.display.commands_display import CommandsDisplay


class TestCommandsDisplay(unittest.TestCase):

    def tearDown(self):
        plt.close('all')

    def test_plot_is_updated(self):
        disp = CommandsDisplay(yrange=(-1, 1), title='M2 commands')
        commands = BaseValue('commands', value=np.zeros(14), target_device_idx=-1)
        disp.inputs['commands'].set(commands)
        disp.setup(1, 10)

        commands.generation_time = 1
        disp.check_ready(1)
        disp.trigger()
        line = disp._line[0]
        np.testing.assert_array_equal(line.get_ydata(), np.zeros(14))

        commands.value = np.linspace(-1, 1, 14)
        commands.generation_time = 2
        disp.check_ready(2)
        disp.trigger()
        assert disp._line[0] is line
        np.testing.assert_array_equal(line.get_ydata(), np.linspace(-1, 1, 14))
        assert plt.gca().get_title() == 'M2 commands'
