from segmao.base_time_obj import BaseTimeObj
from segmao.connections import InputValue, InputList


class BaseProcessingObj(BaseTimeObj):
    def __init__(self, target_device_idx=None, precision=None):
        """
        Initialize the base processing object.

        Parameters:
        precision (int, optional): if None will use the global_precision, otherwise pass 0 for double, 1 for single
        target_device_idx (int, optional): if None will use the default_target_device_idx, otherwise pass -1 for cpu, i for GPU of index i
        """
        BaseTimeObj.__init__(self, target_device_idx=target_device_idx, precision=precision)

        self.current_time = 0
        self.current_time_seconds = 0

        self._verbose = 0
        self._loop_dt = int(0)
        self._loop_niters = 0

        # Will be populated by derived class
        self.inputs = {}
        self.local_inputs = {}
        self.last_seen = {}
        self.outputs = {}
        self.ready = False

    def checkInputTimes(self):
        if len(self.inputs) == 0:
            return True
        for input_name, input_obj in self.inputs.items():
            if type(input_obj) is InputValue:
                tt = input_obj.get_time()
                if tt is None:
                    continue
                if input_name not in self.last_seen and tt >= 0:  # First time
                    return True
                if input_name in self.last_seen and tt > self.last_seen[input_name]:
                    return True
            elif type(input_obj) is InputList:
                times = input_obj.get_time()
                if times is None:
                    continue
                if input_name not in self.last_seen:
                    if any(tt >= 0 for tt in times):
                        return True
                    continue
                for tt, last in zip(times, self.last_seen[input_name]):
                    if tt > last:
                        return True
        return False

    def prepare_trigger(self, t):
        self.current_time_seconds = self.t_to_seconds(self.current_time)
        for input_name, input_obj in self.inputs.items():
            if type(input_obj) is InputValue:
                self.local_inputs[input_name] = input_obj.get(self.target_device_idx)
                if self.local_inputs[input_name] is not None:
                    self.last_seen[input_name] = self.local_inputs[input_name].generation_time
            elif type(input_obj) is InputList:
                self.local_inputs[input_name] = input_obj.get(self.target_device_idx)
                if self.local_inputs[input_name] is not None:
                    self.last_seen[input_name] = [x.generation_time for x in self.local_inputs[input_name]]

    def trigger_code(self):
        pass

    def check_ready(self, t):
        self.current_time = t
        if self.checkInputTimes():
            self.prepare_trigger(t)
            self.ready = True
        else:
            if self.verbose:
                print('No inputs have been refreshed, skipping trigger')
        return self.ready

    def trigger(self):
        if self.ready:
            self.trigger_code()
            self.ready = False

    @property
    def verbose(self):
        return self._verbose

    @verbose.setter
    def verbose(self, value):
        self._verbose = value

    @property
    def loop_dt(self):
        return self._loop_dt

    @property
    def loop_niters(self):
        return self._loop_niters

    def setup(self, loop_dt, loop_niters):
        '''
        Called once by the scheduler after all inputs have been
        connected and before the first tick. Derived classes
        extend it to validate their wiring.
        '''
        self._loop_dt = loop_dt
        self._loop_niters = loop_niters
        for input_name, input_obj in self.inputs.items():
            if input_obj.optional:
                continue
            if type(input_obj) is InputValue and input_obj.wrapped_value is None:
                raise ValueError(f'{type(self).__name__}: input {input_name} is not connected')
            if type(input_obj) is InputList and input_obj.wrapped_list is None:
                raise ValueError(f'{type(self).__name__}: input list {input_name} is not connected')

    def finalize(self):
        '''
        Override this method to perform any actions after
        the simulation is completed
        '''
        pass
