"""Key layouts: where each typing key sits on the virtual instrument.

A `KeyLayout` is an ordered list of rows of key identifiers. The note mapper
turns a key's ``(row, col)`` position into a scale degree or semitone count,
so the order of keys in a layout *is* the instrument.

Three layouts ship with keystrum:

- `TYPEWRITER` (default): a single row in typing-flow order, home row first.
- `MELODIC`: a single row ordered by English letter frequency, so common
  letters cluster in a narrow pitch range.
- `QWERTY_ROWS`: the four physical rows, bottom row lowest. Used for
  keyboard visualisation and lookup.
"""

import typing


class KeyLayout:

	"""A named arrangement of keys into rows.

	The reverse index from key to position is built once at construction and
	is case-insensitive.
	"""

	def __init__ (self, name: str, rows: typing.Sequence[typing.Sequence[str]]) -> None:

		"""Store the rows and build the key → (row, col) index.

		Parameters:
			name: Display name of the layout.
			rows: Key identifiers, lowest row first. When the same key
				appears twice, the later position wins.
		"""

		self.name = name
		self.rows: typing.List[typing.List[str]] = [list(row) for row in rows]
		self._positions: typing.Dict[str, typing.Tuple[int, int]] = {}

		for row_index, row in enumerate(self.rows):
			for col_index, key in enumerate(row):
				self._positions[key.lower()] = (row_index, col_index)

	def position (self, key: str) -> typing.Optional[typing.Tuple[int, int]]:

		"""Return ``(row, col)`` for *key*, or ``None`` when it is not in the layout."""

		return self._positions.get(key.lower())

	def keys (self) -> typing.List[str]:

		"""All keys in row order, lowest row first."""

		return [key for row in self.rows for key in row]

	def __contains__ (self, key: object) -> bool:

		return isinstance(key, str) and key.lower() in self._positions

	def __eq__ (self, other: object) -> bool:

		if not isinstance(other, KeyLayout):
			return NotImplemented

		return self.name == other.name and self.rows == other.rows

	def __hash__ (self) -> int:

		return hash((self.name, tuple(tuple(row) for row in self.rows)))

	def __repr__ (self) -> str:

		return f"KeyLayout({self.name!r}, rows={len(self.rows)})"


QWERTY_ROWS = KeyLayout(
	"QWERTY Rows",
	[
		["z", "x", "c", "v", "b", "n", "m", ",", ".", "/"],
		["a", "s", "d", "f", "g", "h", "j", "k", "l", ";", "'"],
		["q", "w", "e", "r", "t", "y", "u", "i", "o", "p"],
		["1", "2", "3", "4", "5", "6", "7", "8", "9", "0", "-", "="],
	],
)

TYPEWRITER = KeyLayout(
	"Typewriter",
	[
		[
			"a", "s", "d", "f", "g", "h", "j", "k", "l", ";", "'",
			"q", "w", "e", "r", "t", "y", "u", "i", "o", "p",
			"z", "x", "c", "v", "b", "n", "m", ",", ".", "/",
			"1", "2", "3", "4", "5", "6", "7", "8", "9", "0", "-", "=",
		]
	],
)

MELODIC = KeyLayout(
	"Melodic",
	[
		[
			"e", "t", "a", "o", "i", "n", "s", "h", "r", "d", "l",
			"c", "u", "m", "w", "f", "g", "y", "p", "b", "v", "k",
			"j", "x", "q", "z", ";", "'", ",", ".", "/",
			"1", "2", "3", "4", "5", "6", "7", "8", "9", "0", "-", "=",
		]
	],
)

BUILTIN_LAYOUTS: typing.Dict[str, KeyLayout] = {
	"typewriter": TYPEWRITER,
	"melodic": MELODIC,
	"qwerty": QWERTY_ROWS,
}


def get_layout (name: str) -> KeyLayout:

	"""Look up a built-in layout by short name (``"typewriter"``, ``"melodic"``, ``"qwerty"``).

	Raises:
		ValueError: For an unknown name.
	"""

	key = name.strip().lower()

	if key not in BUILTIN_LAYOUTS:
		raise ValueError(f"Unknown key layout: {name!r}. Expected one of {sorted(BUILTIN_LAYOUTS)}")

	return BUILTIN_LAYOUTS[key]
