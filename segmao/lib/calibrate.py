import time

import numpy as np

from segmao.data_objects.poke_matrix import PokeMatrix
from segmao.errors import SensorUnavailable


def _read(sensor_model, mask, xp):
    measurement = sensor_model.read_measurement()
    if measurement is None:
        raise SensorUnavailable(f'{type(sensor_model).__name__} did not produce a readout')
    values = xp.asarray(getattr(measurement, 'values', measurement)).ravel()
    if values.size != mask.size:
        raise SensorUnavailable(f'Readout has {values.size} elements, valid element mask has {mask.size}')
    return values[mask]


def calibrate(sensor_model, poke_spec, mask, xp=np, verbose=False, target_device_idx=None, precision=None):
    '''
    Builds the poke matrix of *poke_spec* one column per DOF component.

    Each component is perturbed by its amplitude, measured against the
    baseline and reverted before the next one, so that perturbations
    never accumulate. The valid elements are resolved once from *mask*
    and used for every column.

    Parameters:
    sensor_model (BaseSensorModel): model with exclusive access for the whole call
    poke_spec (PokeSpecification): DOFs to perturb, one slot per segment
    mask (ValidElementMask): valid element policy

    Returns:
    tuple: (PokeMatrix, diagnostics dictionary)
    '''
    valid = mask.resolve(sensor_model, xp=xp)
    n_data = int(valid.sum())
    if verbose:
        print(f' - calibration of {poke_spec.n_columns} DOFs on {n_data} valid elements ...')

    now = time.perf_counter()
    columns = []
    for sid, slot in enumerate(poke_spec, start=1):
        if slot is None:
            continue
        for dof in slot:
            for component in dof.components():
                baseline = _read(sensor_model, valid, xp)
                try:
                    sensor_model.apply_perturbation((sid, *component), dof.amplitude)
                    perturbed = _read(sensor_model, valid, xp)
                finally:
                    sensor_model.restore_nominal()
                columns.append((perturbed - baseline) / dof.amplitude)

    if columns:
        poke = xp.stack(columns, axis=1)
    else:
        poke = xp.zeros((n_data, 0))
    elapsed = time.perf_counter() - now

    diagnostics = {
        'n_data': poke.shape[0],
        'n_mode': poke.shape[1],
        'segment_counts': poke_spec.segment_counts(),
        'elapsed': elapsed,
    }
    if verbose:
        print(f"GMT 2 WFS calibration [{poke.shape[0]}x{poke.shape[1]}] in {elapsed:.1f}s")

    poke_matrix = PokeMatrix(poke, mask=valid, segment_counts=diagnostics['segment_counts'],
                             target_device_idx=target_device_idx, precision=precision)
    return poke_matrix, diagnostics
