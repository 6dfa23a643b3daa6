from segmao.base_data_obj import BaseDataObj


class BaseValue(BaseDataObj):
    def __init__(self, description='', value=None, target_device_idx=None, precision=None):
        """
        Initialize the base value object.

        Parameters:
        description (str, optional)
        value (any, optional): data to store. If not set, the value is initialized to None.
        """
        super().__init__(target_device_idx=target_device_idx, precision=precision)
        self._description = description
        self._value = value

    @property
    def description(self):
        return self._description

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, val):
        self._value = val

    def __repr__(self):
        return f'BaseValue({self._description!r})'
