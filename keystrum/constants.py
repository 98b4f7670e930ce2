"""Shared timing, velocity and key-code constants.

Velocities are MIDI attack strengths (0-127). Durations are in seconds of
wall-clock (or virtual) time, because the performance engines work on a
seconds-based clock rather than the sequencer pulse grid.

Key codes are hardware virtual key numbers as delivered by the host
keyboard layer (macOS numbering). Only the codes with a fixed control
meaning are listed; every other key is routed by its character.
"""

# MIDI range
MIN_NOTE = 0
MAX_NOTE = 127
MIN_VELOCITY = 0
MAX_VELOCITY = 127

# Velocity
DEFAULT_BASE_VELOCITY = 90
MIN_BASE_VELOCITY = 40
ACCENT_BOOST = 24
DYNAMIC_RANGE = 30
MIN_DYNAMIC_VELOCITY = 28
FAST_ONSET_SECONDS = 0.03
SLOW_ONSET_SECONDS = 0.50
MIN_CHUG_VELOCITY = 64
FALLBACK_SCRIPT_VELOCITY = 96

# Tempo
DEFAULT_TEMPO_BPM = 140
MIN_TEMPO_BPM = 40
MAX_TEMPO_BPM = 240

# Octave / row offsets
MIN_OCTAVE_OFFSET = -2
MAX_OCTAVE_OFFSET = 3
MIN_ROW_OFFSET = 0
MAX_ROW_OFFSET = 12

# Transients and strums
MIN_TRANSIENT_SECONDS = 0.02
MAX_TRANSIENT_SECONDS = 2.5
STRUM_STEP_SECONDS = 0.012

# Pad
PAD_RANGE_SEMITONES = 24
PAD_MIN_VELOCITY = 16
PAD_VELOCITY_SPAN = 110
PAD_ACCENT_BOOST = 20

# Hold floor is stretched slightly so a held note overlaps the next tick.
HOLD_FLOOR_STRETCH = 1.05

# Key codes
KEY_CODE_RETURN = 36
KEY_CODE_TAB = 48
KEY_CODE_SPACE = 49
KEY_CODE_ESCAPE = 53
KEY_CODE_M = 46
KEY_CODE_LEFT_BRACKET = 33
KEY_CODE_RIGHT_BRACKET = 30
