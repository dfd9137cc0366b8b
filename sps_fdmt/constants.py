# Dispersion constant in MHz^2 s pc^-1 cm^3
KDM = 4.148808e3
# The frequency of the top part of the CHIME band
FREQ_TOP = 800.1953125
# The frequency of the bottom part of the CHIME band
FREQ_BOTTOM = 400.1953125
# Sampling time of the SPS intensity data
TSAMP = 0.00098304
# Accumulators narrower than this many bytes are promoted before summing channels
MIN_ACCUMULATOR_BYTES = 4
