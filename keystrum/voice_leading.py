"""Single-note voice leading.

Keeps melodic lines "singable" by choosing, for a target pitch class, the
octave nearest to a reference note. Without it, switching layouts or typing
keys far apart on the instrument produces large register jumps.

Example:
	```python
	nearest_octave(4, reference=60)   # → 64 (E4 is 4 semitones from C4)
	nearest_octave(4, reference=50)   # → 52
	smooth(76, reference=None)        # → 76 (nothing to lead towards)
	```
"""

import typing


def nearest_octave (pitch_class: int, reference: int) -> int:

	"""Return the MIDI note of *pitch_class* closest to *reference*.

	All notes in 0-127 congruent to the pitch class are scanned in ascending
	order and only a strictly smaller distance replaces the current best, so
	ties resolve to the lower note.

	Parameters:
		pitch_class: Any integer; reduced modulo 12.
		reference: MIDI note to lead towards.

	Returns:
		A MIDI note number in 0-127.
	"""

	pc = pitch_class % 12
	best = pc
	best_distance = abs(pc - reference)

	for candidate in range(pc, 128, 12):
		distance = abs(candidate - reference)

		if distance < best_distance:
			best = candidate
			best_distance = distance

	return max(0, min(127, best))


def smooth (raw_note: int, reference: typing.Optional[int]) -> int:

	"""Voice-lead *raw_note* towards *reference*, keeping its pitch class.

	Returns *raw_note* unchanged when there is no reference.
	"""

	if reference is None:
		return raw_note

	return nearest_octave(raw_note % 12, reference)
