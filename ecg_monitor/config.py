"""Central configuration for the ECG monitor core."""

SWEEP_WINDOW_POINTS = 250  # width of one sweep (number of points)
Y_MIN = 0.0
Y_MAX = 4095.0  # 12-bit ADC full scale

DEFAULT_DEVICE_NAME = "HC-05"
BAUD_RATE = 115200
SAMPLE_RATE_HZ = 360  # firmware samples the AD8232 at 360 Hz

READ_CHUNK_SIZE = 1024
POLL_INTERVAL = 0.01  # seconds between polls of an idle link
MAX_PENDING_BYTES = 4096  # unterminated bytes tolerated before the line buffer is dropped

BRADYCARDIA_BPM = 60
TACHYCARDIA_BPM = 100
