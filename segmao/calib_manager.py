import os
from astropy.io import fits

from segmao.data_objects.pinv import PseudoInverse
from segmao.data_objects.poke_matrix import PokeMatrix


class CalibManager():
    def __init__(self, root_dir, **subdirs):
        """
        Initialize the calibration manager object.

        Parameters:
        root_dir (str): Root path of the calibration tree
        subdirs (dict, optional): overrides of the default subdirectories
        """
        self._subdirs = {
            'pinv': 'pinv/',
            'poke': 'poke/',
            'data': 'data/',
        }
        self._root_dir = root_dir
        for key, value in subdirs.items():
            if key not in self._subdirs:
                raise KeyError(f'Unknown calibration subdirectory: {key}')
            self._subdirs[key] = value

    @property
    def root_dir(self):
        return self._root_dir

    @root_dir.setter
    def root_dir(self, value):
        self._root_dir = value

    def root_subdir(self, type):
        return os.path.join(self.root_dir, self._subdirs[type])

    def filename(self, subdir, name):
        """
        Build the filename for a given subdir and name.
        """
        if not name.endswith('.fits'):
            name += '.fits'
        return os.path.join(self._root_dir, self._subdirs[subdir], name)

    def exists(self, subdir, name):
        return os.path.exists(self.filename(subdir, name))

    def _prepare(self, subdir, name):
        filename = self.filename(subdir, name)
        os.makedirs(os.path.dirname(filename), exist_ok=True)
        return filename

    def writefits(self, subdir, name, data):
        """
        Write data to a FITS file.
        """
        fits.writeto(self._prepare(subdir, name), data, overwrite=True)

    def readfits(self, subdir, name):
        """
        Read data from a FITS file, or None if the file is missing.
        """
        filename = self.filename(subdir, name)
        if not os.path.exists(filename):
            print(f"Missing file: {filename}")
            return None
        return fits.getdata(filename)

    def write_pinv(self, name, pinv):
        pinv.save(self._prepare('pinv', name))

    def read_pinv(self, name, target_device_idx=None):
        return PseudoInverse.restore(self.filename('pinv', name), target_device_idx=target_device_idx)

    def write_poke(self, name, poke):
        poke.save(self._prepare('poke', name))

    def read_poke(self, name, target_device_idx=None):
        return PokeMatrix.restore(self.filename('poke', name), target_device_idx=target_device_idx)

    def write_data(self, name, data):
        self.writefits('data', name, data)

    def read_data(self, name):
        return self.readfits('data', name)

    def __repr__(self):
        return f'Calibration manager ({self._root_dir})'
