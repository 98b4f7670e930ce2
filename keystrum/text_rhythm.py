"""Rhythm helpers for reading text as a score."""

import typing


DEFAULT_HOLD_CHARACTERS: typing.FrozenSet[str] = frozenset("-")


def hold_run_length (index: int, characters: typing.Sequence[str], hold_characters: typing.AbstractSet[str] = DEFAULT_HOLD_CHARACTERS) -> int:

	"""Count hold characters immediately after *index*.

	The count never wraps past the end of the text, even though script
	playback itself loops.

	Example:
		```python
		hold_run_length(0, "a--b-")  # → 2
		hold_run_length(3, "a--b-")  # → 1
		hold_run_length(2, "--a")    # → 0
		```
	"""

	if not characters or not hold_characters:
		return 0

	if index < 0 or index >= len(characters):
		return 0

	count = 0
	cursor = index + 1

	while cursor < len(characters) and characters[cursor] in hold_characters:
		count += 1
		cursor += 1

	return count
