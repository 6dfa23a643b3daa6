import yaml

import segmao
from segmao.agws import AgwsShackHartmann
from segmao.calib_manager import CalibManager
from segmao.data_objects.guide_star import GuideStar
from segmao.data_objects.poke_spec import N_SEGMENT, PokeSpecification
from segmao.data_objects.sensor_config import make_sensor_config
from segmao.lib.valid_mask import ValidElementMask
from segmao.processing_objects.dof_reconstructor import DofReconstructor
from segmao.processing_objects.edge_sensor_piston_control import EdgeSensorPistonControl
from segmao.processing_objects.m2_dynamics import M2Dynamics
from segmao.processing_objects.rxy2rbm import Rxy2Rbm


def read_params(filename):
    '''Reads a YAML parameter file into a dictionary'''
    with open(filename, 'r') as stream:
        params = yaml.safe_load(stream)
    if not isinstance(params, dict):
        raise ValueError(f'Parameter file {filename} does not contain a dictionary')
    return params


class Factory:
    def __init__(self, params, NOCM=False, precision=None, target_device_idx=None):
        """
        Initialize the factory object.

        Parameters:
        params (dict): Dictionary with the main parameters (root_dir, n_segment, verbose)
        NOCM (bool, optional): If set, no calibration manager will be created inside the factory
        """
        self._main = self.ensure_dictionary(params)
        self._global_params = ['verbose']

        if precision is None:
            self._precision = segmao.global_precision
        else:
            self._precision = precision
        self._target_device_idx = target_device_idx
        self.n_segment = self._main.get('n_segment', N_SEGMENT)
        self._cm = None
        if not NOCM:
            self._cm = self.get_calib_manager()

    @classmethod
    def from_yaml(cls, filename, **kwargs):
        params = read_params(filename)
        return cls(params['main'], **kwargs), params

    @property
    def cm(self):
        return self._cm

    def ensure_dictionary(self, params):
        """
        Ensure that params is a dictionary, and copy it so that keywords
        can be extracted without modifying the caller's one.
        """
        if not isinstance(params, dict):
            raise ValueError("params must be a dictionary")
        return dict(params)

    def extract(self, dictionary, key, default=None, optional=False):
        """
        Gets a keyword and remove it from the dictionary.
        Similar to the "remove" function of a dictionary, but allows
        for a default value to be specified.
        """
        if key not in dictionary and default is None and optional is False:
            raise KeyError(f"Error: missing key: {key}")

        return dictionary.pop(key, default)

    def check_empty(self, params, what):
        if len(params) > 0:
            raise ValueError(f'Unknown {what} parameters: {list(params)}')

    def apply_global_params(self, obj):
        """
        Applies global parameters (verbose) to the specified object.
        """
        for p in self._global_params:
            if p in self._main and hasattr(obj, p):
                setattr(obj, p, self._main[p])

    def device_kwargs(self):
        return dict(target_device_idx=self._target_device_idx, precision=self._precision)

    def get_calib_manager(self, params=None):
        """
        Create a calibration manager object, with optional
        subdirectory overrides in *params*
        """
        root_dir = self._main['root_dir']
        subdirs = self.ensure_dictionary(params) if params else {}
        return CalibManager(root_dir, **subdirs)

    def read_matrix(self, tag):
        if tag is None:
            return None
        if self._cm is None:
            raise ValueError(f'Cannot read {tag}: factory has no calibration manager')
        data = self._cm.read_data(tag)
        if data is None:
            raise ValueError(f'Data {tag} not found in {self._cm}')
        return data

    def get_sensor_config(self, params):
        params = self.ensure_dictionary(params)
        kind = self.extract(params, 'kind')
        fidelity = self.extract(params, 'fidelity', default='geometric')
        n_sensor = self.extract(params, 'n_sensor', default=1)
        flux_threshold = self.extract(params, 'flux_threshold', default=0.0)
        self.check_empty(params, 'sensor')
        return make_sensor_config(kind, fidelity, n_sensor, flux_threshold)

    def get_guide_star(self, params):
        """
        Create a guide star asterism. The *type* key is one of
        on_axis, off_axis (zenith, azimuth), on_ring (n_source, rho)
        or list (zenith and azimuth lists).
        """
        params = self.ensure_dictionary(params)
        gs_type = params.pop('type', 'on_axis')
        magnitude = self.extract(params, 'magnitude', default=0.0)

        if gs_type == 'on_axis':
            gs = GuideStar.on_axis(magnitude)
        elif gs_type == 'off_axis':
            gs = GuideStar.off_axis(self.extract(params, 'zenith'), self.extract(params, 'azimuth'), magnitude)
        elif gs_type == 'on_ring':
            gs = GuideStar.on_ring(self.extract(params, 'n_source'), self.extract(params, 'rho'), magnitude)
        elif gs_type == 'list':
            gs = GuideStar(self.extract(params, 'zenith'), self.extract(params, 'azimuth'), magnitude)
        else:
            raise ValueError(f'Unknown guide star type: {gs_type}')
        self.check_empty(params, 'guide star')
        return gs

    def get_poke_spec(self, params):
        return PokeSpecification.from_params(params, n_segment=self.n_segment)

    def get_mask(self, params, sensor=None):
        """
        Create a valid element mask policy: all, threshold (flux_threshold)
        or other_sensor, for which *sensor* must be given.
        """
        params = self.ensure_dictionary(params)
        policy = self.extract(params, 'policy')
        if policy == 'all':
            return ValidElementMask.all()
        elif policy == 'threshold':
            return ValidElementMask.threshold(self.extract(params, 'flux_threshold'))
        elif policy == 'other_sensor':
            if sensor is None:
                raise ValueError('The other_sensor mask policy needs a calibrated sensor')
            return ValidElementMask.other_sensor(sensor)
        else:
            raise ValueError(f'Unknown valid element policy: {policy}')

    def get_agws_wfs(self, params, mask_sensor=None):
        """
        Create an AGWS Shack-Hartmann builder.

        Besides the sensor configuration keys, *params* may have
        guide_star, poke (or m2_tiptilt: true), mask, and the
        left_pinv_tag / right_pinv_tag of matrices stored in the
        calibration manager.
        """
        params = self.ensure_dictionary(params)
        gs_params = self.extract(params, 'guide_star', optional=True)
        poke_params = self.extract(params, 'poke', optional=True)
        m2_tiptilt = self.extract(params, 'm2_tiptilt', default=False)
        mask_params = self.extract(params, 'mask', optional=True)
        left = self.read_matrix(self.extract(params, 'left_pinv_tag', optional=True))
        right = self.read_matrix(self.extract(params, 'right_pinv_tag', optional=True))

        wfs = AgwsShackHartmann(self.get_sensor_config(params))
        if gs_params is not None:
            wfs.guide_star(self.get_guide_star(gs_params))
        if m2_tiptilt:
            wfs.with_m2_tiptilt()
        elif poke_params is not None:
            wfs.poker(self.get_poke_spec(poke_params))
        if mask_params is not None:
            wfs.mask(self.get_mask(mask_params, sensor=mask_sensor))
        if left is not None:
            wfs.left_pinv(left)
        if right is not None:
            wfs.right_pinv(right)

        self.apply_global_params(wfs)
        return wfs

    def get_control(self, params):
        """
        Create a control stage. The *type* key is M2_DYNAMICS or
        EDGE_SENSOR_PISTON.
        """
        params = self.ensure_dictionary(params)
        control_type = params.pop('type')

        if control_type == 'M2_DYNAMICS':
            return self.get_m2_dynamics(params)
        elif control_type == 'EDGE_SENSOR_PISTON':
            return self.get_edge_sensor_piston_control(params)
        else:
            raise ValueError(f'Unknown control type: {control_type}')

    def _get_second_order_stage(self, klass, params):
        params = self.ensure_dictionary(params)
        n_data = self.extract(params, 'n_data')
        preset = self.extract(params, 'preset', optional=True)
        if preset is not None:
            stage = klass.from_preset(preset, n_data, **params, **self.device_kwargs())
        else:
            stage = klass(n_data, **params, **self.device_kwargs())
        self.apply_global_params(stage)
        return stage

    def get_m2_dynamics(self, params):
        """
        Create a M2Dynamics control stage, either from a *preset* name
        or from pole, damping, integration, latency and gain.
        """
        return self._get_second_order_stage(M2Dynamics, params)

    def get_edge_sensor_piston_control(self, params):
        return self._get_second_order_stage(EdgeSensorPistonControl, params)

    def get_dof_reconstructor(self, params):
        params = self.ensure_dictionary(params)
        pinv_tag = self.extract(params, 'pinv_tag')
        if self._cm is None:
            raise ValueError('DofReconstructor needs a calibration manager to read its pseudo-inverse')
        pinv = self._cm.read_pinv(pinv_tag, target_device_idx=self._target_device_idx)
        mask_tag = self.extract(params, 'mask_tag', optional=True)
        mask = self.read_matrix(mask_tag)
        if mask is not None:
            mask = mask.astype(bool)
        self.check_empty(params, 'DOF reconstructor')

        rec = DofReconstructor(pinv, mask=mask, **self.device_kwargs())
        self.apply_global_params(rec)
        return rec

    def get_rxy2rbm(self, params=None):
        params = self.ensure_dictionary(params or {})
        n_segment = self.extract(params, 'n_segment', default=self.n_segment)
        self.check_empty(params, 'Rxy2Rbm')
        obj = Rxy2Rbm(n_segment, **self.device_kwargs())
        self.apply_global_params(obj)
        return obj

    def get_processing_objects(self, params):
        """
        Create the processing objects of a parameter dictionary, in order.
        Each entry is keyed by its name and has a *class* key among
        M2Dynamics, EdgeSensorPistonControl, DofReconstructor and Rxy2Rbm.
        """
        builders = {
            'M2Dynamics': self.get_m2_dynamics,
            'EdgeSensorPistonControl': self.get_edge_sensor_piston_control,
            'DofReconstructor': self.get_dof_reconstructor,
            'Rxy2Rbm': self.get_rxy2rbm,
        }
        objs = {}
        for name, obj_params in params.items():
            if not isinstance(obj_params, dict) or 'class' not in obj_params:
                continue
            obj_params = self.ensure_dictionary(obj_params)
            classname = obj_params.pop('class')
            if classname not in builders:
                raise ValueError(f'{name}: unknown class {classname}')
            objs[name] = builders[classname](obj_params)
        return objs
