import numpy as np
import os

cpu_float_dtype_list = [np.float64, np.float32]

gpuEnabled = False
cp = None
xp = np
global_precision = 0
float_dtype_list = None
gpu_float_dtype_list = cpu_float_dtype_list
float_dtype = np.float64
default_target_device_idx = -1
default_target_device = None

# precision = 0 -> double precision
# precision = 1 -> single precision

# target_device = -1 -> CPU
# target_device = i>-1 -> GPUi

# Calibration is always safe on the CPU; a GPU can be requested
# for large poke matrices, if cupy is installed.


def init(device_idx=-1, precision=0):
    global xp
    global cp
    global gpuEnabled
    global global_precision
    global float_dtype_list
    global gpu_float_dtype_list
    global float_dtype
    global default_target_device_idx
    global default_target_device

    default_target_device_idx = device_idx
    systemDisable = os.environ.get('SEGMAO_DISABLE_GPU', 'FALSE')
    if systemDisable == 'FALSE':
        try:
            import cupy as cp
            print("Cupy import successfull. Installed version is:", cp.__version__)
            gpuEnabled = True
        except ImportError:
            print("Cupy import failed. SEGMAO will fall back to CPU use.")
            cp = None
            default_target_device_idx = -1
    else:
        print("env variable SEGMAO_DISABLE_GPU prevents using the GPU.")
        cp = None
        default_target_device_idx = -1

    if default_target_device_idx >= 0:
        xp = cp
        gpu_float_dtype_list = [cp.float64, cp.float32]
        default_target_device = cp.cuda.Device(default_target_device_idx)
        default_target_device.use()
        print('Default device is GPU number ', default_target_device_idx)
    else:
        print('Default device is CPU')
        xp = np

    float_dtype_list = [xp.float64, xp.float32]
    global_precision = precision
    float_dtype = float_dtype_list[global_precision]


# should be used as less as possible and preferably outside the control loop
def cpuArray(v):
    if cp and isinstance(v, cp.ndarray):
        return cp.asnumpy(v)
    else:
        return np.array(v)
