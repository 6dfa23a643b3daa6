'''
GMT Acquisition, Guiding and Wavefront Sensing (AGWS) Shack-Hartmann sensors.

The optical model itself is external: AGWS is given a *model_builder*
callable

    model_builder(sensor_config, guide_star, options) -> BaseSensorModel

which builds the GMT optical model seen through the Shack-Hartmann
sensors of *sensor_config*, for the sources of *guide_star*, with the
extra *options* (atmosphere, dome seeing, static aberrations), each one
a dictionary with a "type" key.
'''
from segmao.data_objects.dof import DegreeOfFreedom
from segmao.data_objects.guide_star import GuideStar
from segmao.data_objects.poke_spec import N_SEGMENT, PokeSpecification
from segmao.data_objects.sensor_config import make_sensor_config
from segmao.errors import OpticalModelBuildFailed
from segmao.lib.calibrate import calibrate
from segmao.lib.valid_mask import ValidElementMask


class AgwsShackHartmann():
    '''AGWS Shack-Hartmann wavefront sensor builder

    A bare sensor uses an on-axis guide star and all its lenslets.
    The chain methods modify the builder and return it.
    '''
    def __init__(self, config, verbose=True):
        self.config = config
        self.guide_stars = GuideStar.on_axis()
        self.poke_spec = None
        self.left = None
        self.right = None
        self.mask_policy = None
        self.verbose = verbose

    @classmethod
    def builder(cls, kind, fidelity='geometric', n_sensor=1, **kwargs):
        return cls(make_sensor_config(kind, fidelity, n_sensor), **kwargs)

    def guide_star(self, guide_star):
        self.guide_stars = guide_star
        return self

    def flux_threshold(self, flux_threshold):
        self.config = make_sensor_config(self.config.kind, self.config.fidelity,
                                         self.config.n_sensor, flux_threshold)
        return self

    def poker(self, poke_spec):
        '''Sets the DOFs seen by the sensor'''
        if not isinstance(poke_spec, PokeSpecification):
            poke_spec = PokeSpecification(poke_spec)
        self.poke_spec = poke_spec
        return self

    def with_m2_tiptilt(self, amplitude=1e-6):
        '''Pokes the tip and tilt of the 7 M2 segments'''
        return self.poker(PokeSpecification.uniform([DegreeOfFreedom.rxyz(amplitude, (0, 2), mirror='M2')],
                                                    N_SEGMENT))

    def left_pinv(self, left):
        '''Sets the matrix left-multiplying the pseudo-inverse of the poke matrix'''
        self.left = left
        return self

    def right_pinv(self, right):
        '''Sets the matrix right-multiplying the pseudo-inverse of the poke matrix'''
        self.right = right
        return self

    def mask(self, policy):
        '''Overrides the valid lenslet selection, by default those of the operating sensor'''
        self.mask_policy = policy
        return self

    @property
    def tag(self):
        return self.config.tag

    @property
    def cache_tag(self):
        return self.config.cache_tag

    def check(self):
        if self.guide_stars.n_source != self.config.n_sensor:
            raise ValueError(f'{self.tag}: {self.config.n_sensor} sensors but '
                             f'{self.guide_stars.n_source} guide stars')
        if self.poke_spec is None:
            raise ValueError(f'{self.tag}: no DOF to calibrate, set them with poker()')

    def calibrate(self, poker_model, mask):
        '''Returns the poke matrix of the poker sensor and the calibration diagnostics'''
        self.check()
        if self.verbose:
            print(' - calibration ...')
        return calibrate(poker_model, self.poke_spec, mask,
                         xp=poker_model.xp, verbose=self.verbose,
                         target_device_idx=poker_model.target_device_idx)

    def compose(self, pinv):
        if self.left is None and self.right is None:
            return pinv
        return pinv.transform(self.left, self.right)

    def poke(self, poker_model, mask):
        '''
        Calibrates the poker sensor and returns the pseudo-inverse of
        the poke matrix, multiplied by the left and right matrices
        '''
        poke_matrix, _ = self.calibrate(poker_model, mask)
        return self.compose(poke_matrix.generate_pinv(tolerance=0.0, verbose=self.verbose))


class AGWS():
    '''AGWS builder, with only the default GMT optical model'''

    def __init__(self, model_builder, verbose=True):
        self.model_builder = model_builder
        self.maybe_atmosphere = None
        self.maybe_dome_seeing = None
        self.maybe_aberration = None
        self.verbose = verbose

    def atmosphere(self, atmosphere, time_step):
        self.maybe_atmosphere = {'type': 'atmosphere', 'atmosphere': atmosphere, 'time_step': time_step}
        return self

    def dome_seeing(self, cfd_case, upsampling_rate):
        self.maybe_dome_seeing = {'type': 'dome_seeing', 'cfd_case': cfd_case, 'upsampling_rate': upsampling_rate}
        return self

    def static_aberration(self, phase):
        self.maybe_aberration = {'type': 'static_aberration', 'phase': phase}
        return self

    @property
    def options(self):
        return [x for x in (self.maybe_atmosphere, self.maybe_dome_seeing, self.maybe_aberration) if x is not None]

    def build_model(self, config, guide_star, options):
        try:
            model = self.model_builder(config, guide_star, options)
        except Exception as e:
            raise OpticalModelBuildFailed(f'{config.tag} optical model: {e}') from e
        if model is None:
            raise OpticalModelBuildFailed(f'{config.tag} optical model builder returned nothing')
        return model

    def poke_with(self, wfs, cm=None):
        '''
        Returns the poke matrix of *wfs* poker sensor, restored from the
        calibration manager *cm* if available and saved to it otherwise.
        All the lenslets are used unless a mask policy is set.
        '''
        if cm is not None and cm.exists('poke', wfs.cache_tag):
            if self.verbose:
                print(f'Loading {wfs.tag} poke matrix from {cm.filename("poke", wfs.cache_tag)}')
            return cm.read_poke(wfs.cache_tag)

        wfs.check()
        poker_model = self.build_model(wfs.config.poker(), wfs.guide_stars, [])
        mask = wfs.mask_policy or ValidElementMask.all()
        poke_matrix, _ = wfs.calibrate(poker_model, mask)
        if cm is not None:
            cm.write_poke(wfs.cache_tag, poke_matrix)
        return poke_matrix

    def build_wfs(self, wfs, cm=None):
        '''
        Builds the optical model of *wfs* and installs on it the
        pseudo-inverse of the poke matrix, so that its output are DOFs.

        The poke matrix is computed with the geometric twin of the sensor,
        over the valid lenslets of the operating sensor unless another
        mask policy is set. With a calibration manager *cm* the
        pseudo-inverse is restored from it if available and saved to
        it otherwise.
        '''
        wfs.check()
        model = self.build_model(wfs.config, wfs.guide_stars, self.options)
        mask = wfs.mask_policy or ValidElementMask.other_sensor(model)

        if cm is not None and cm.exists('pinv', wfs.cache_tag):
            if self.verbose:
                print(f'Loading {wfs.tag} pseudo-inverse from {cm.filename("pinv", wfs.cache_tag)}')
            pinv = cm.read_pinv(wfs.cache_tag, target_device_idx=model.target_device_idx)
            valid = mask.resolve(model, xp=model.xp)
            if pinv.shape[1] != int(valid.sum()):
                raise ValueError(f'{wfs.tag}: cached pseudo-inverse has {pinv.shape[1]} columns '
                                 f'but {int(valid.sum())} lenslet measurements are valid')
        else:
            poker_model = self.build_model(wfs.config.poker(), wfs.guide_stars, [])
            poke_matrix, _ = wfs.calibrate(poker_model, mask)
            valid = poke_matrix.mask
            pinv = poke_matrix.generate_pinv(tolerance=0.0, verbose=self.verbose)
            if cm is not None:
                cm.write_pinv(wfs.cache_tag, pinv)
                if self.verbose:
                    print(f'{wfs.tag} pseudo-inverse saved to {cm.filename("pinv", wfs.cache_tag)}')

        model.sensor_matrix_transform(wfs.compose(pinv), valid)
        model.tag = wfs.tag
        return model

    def build(self, sh24=None, sh48=None, cm=None):
        '''Builds and returns the AGWS SH24 and SH48 wavefront sensors'''
        for wfs, kind in ((sh24, 'SH24'), (sh48, 'SH48')):
            if wfs is not None and wfs.config.kind != kind:
                raise ValueError(f'Expected a {kind} sensor, got {wfs.tag}')
        return (None if sh24 is None else self.build_wfs(sh24, cm),
                None if sh48 is None else self.build_wfs(sh48, cm))
