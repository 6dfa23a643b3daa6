import matplotlib.pyplot as plt

from segmao.base_processing_obj import BaseProcessingObj
from segmao.connections import InputValue
from segmao.base_value import BaseValue


class CommandsDisplay(BaseProcessingObj):
    def __init__(self, wsize=(600, 300), window=23, yrange=None, title=''):
        super().__init__(target_device_idx=-1)

        self._wsize = wsize
        self._window = window
        self._yrange = yrange
        self._title = title
        self._line = None
        self.inputs['commands'] = InputValue(type=BaseValue)

    def set_w(self):
        plt.figure(self._window, figsize=(self._wsize[0] / 100, self._wsize[1] / 100))
        plt.title(self._title if self._title != '' else 'commands')

    def trigger_code(self):
        commands = self.local_inputs['commands'].value
        if commands is None:
            return

        if self._line is None:
            self.set_w()
            self._line = plt.plot(commands, '.-')
            if self._yrange is not None:
                plt.ylim(self._yrange)
        else:
            self._line[0].set_ydata(commands)
        plt.draw()
        plt.pause(0.01)
