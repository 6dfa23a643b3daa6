
class SegmaoError(Exception):
    '''Base class of all segmao errors'''


class OpticalModelBuildFailed(SegmaoError):
    '''The external optical model could not be built'''


class SensorUnavailable(SegmaoError):
    '''The sensor model cannot produce a readout or a valid-element mask'''


class InversionFailed(SegmaoError):
    '''The poke matrix cannot be decomposed or inverted'''


class WiringError(SegmaoError, ValueError):
    '''Vector length mismatch between connected ports, detected before the loop starts'''
