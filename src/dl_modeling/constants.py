"""Package wide constants."""

import tensorflow as tf

# ---------------------------------------------------------------------
# numerics
# ---------------------------------------------------------------------

DEFAULT_DTYPE = tf.float32
DEFAULT_EPSILON = 1e-7

# ---------------------------------------------------------------------
# regularization
# ---------------------------------------------------------------------

DEFAULT_PENALTY = 0.01

# ---------------------------------------------------------------------
# weight kinds, used as variable suffixes and HDF5 weight names
# ---------------------------------------------------------------------

KERNEL = "kernel"
BIAS = "bias"
DEPTHWISE_KERNEL = "depthwise_kernel"
GAMMA = "gamma"
BETA = "beta"
MOVING_MEAN = "moving_mean"
MOVING_VARIANCE = "moving_variance"
ALPHA = "alpha"

# ---------------------------------------------------------------------
# optimizer slot names
# ---------------------------------------------------------------------

SLOT_ACCUMULATOR = "accumulator"
SLOT_ACCUMULATOR_UPDATE = "accumulator_update"
SLOT_SQUARED_ACCUMULATOR = "squared_accumulator"
SLOT_LINEAR_ACCUMULATOR = "linear_accumulator"
SLOT_MOMENTUM = "momentum"
SLOT_RMS = "rms"
SLOT_MG = "mg"
SLOT_FIRST_MOMENT = "m"
SLOT_SECOND_MOMENT = "v"

BETA_ONE_POWER = "beta1_power"
BETA_TWO_POWER = "beta2_power"
GLOBAL_STEP = "global_step"

# ---------------------------------------------------------------------
# saved model layout
# ---------------------------------------------------------------------

MODEL_CONFIG_FILE_NAME = "model_config.json"
MODEL_WEIGHTS_FILE_NAME = "model_weights.h5"
MODEL_WEIGHTS_GROUP = "model_weights"
OPTIMIZER_WEIGHTS_GROUP = "optimizer_weights"
KERAS_VERSION = "2.4.0"
BACKEND = "tensorflow"

# ---------------------------------------------------------------------
