"""Chord-chart tokenizing.

A chart is free text: whitespace separates tokens, ``|`` marks a bar line,
and every other token is a chord symbol or noise. Tokens keep their source
ranges so a UI can highlight the chord that is sounding.

Parsing is forgiving. Surrounding punctuation is trimmed before parsing
(``"(Em)"`` reads as ``Em``) and tokens that still fail to parse are dropped.
Bar lines never reach the chord parser but survive `chord_chart_from_text()`.
"""

import dataclasses
import typing

import keystrum.chords


BAR_LINE = "|"

_ALLOWED_EDGE_EXTRAS = frozenset("#b/")


@dataclasses.dataclass(frozen=True)
class RawToken:

	"""A whitespace-delimited slice of the source text.

	Attributes:
		raw: The token text.
		start: Index of the first character in the source.
		end: Index one past the last character.
	"""

	raw: str
	start: int
	end: int


@dataclasses.dataclass(frozen=True)
class ChartToken:

	"""A successfully parsed chord with its place in the source text."""

	chord: keystrum.chords.ChordSymbol
	raw: str
	start: int
	end: int

	@property
	def range (self) -> typing.Tuple[int, int]:

		return self.start, self.end


def token_ranges (text: str) -> typing.List[RawToken]:

	"""Split *text* on whitespace, keeping each token's ``[start, end)`` range."""

	tokens: typing.List[RawToken] = []
	start: typing.Optional[int] = None

	for index, character in enumerate(text):
		if character.isspace():
			if start is not None:
				tokens.append(RawToken(text[start:index], start, index))
				start = None
		elif start is None:
			start = index

	if start is not None:
		tokens.append(RawToken(text[start:], start, len(text)))

	return tokens


def _is_allowed_chord_character (character: str) -> bool:

	return character.isalnum() or character in _ALLOWED_EDGE_EXTRAS


def clean_chord_token (token: str) -> str:

	"""Trim characters that cannot belong to a chord symbol from both ends of *token*."""

	trimmed = token.strip()
	start = 0
	end = len(trimmed)

	while start < end and not _is_allowed_chord_character(trimmed[start]):
		start += 1

	while end > start and not _is_allowed_chord_character(trimmed[end - 1]):
		end -= 1

	return trimmed[start:end]


def parse_chart (text: str) -> typing.List[ChartToken]:

	"""Parse chart text into chords, in source order.

	Bar lines and unparseable tokens are skipped. The order of the returned
	list is the order the chords are played in.
	"""

	parsed: typing.List[ChartToken] = []

	for token in token_ranges(text):
		if token.raw == BAR_LINE:
			continue

		chord = keystrum.chords.parse_chord_symbol(clean_chord_token(token.raw))

		if chord is None:
			continue

		parsed.append(ChartToken(chord=chord, raw=chord.raw, start=token.start, end=token.end))

	return parsed


def chord_chart_from_text (text: str) -> str:

	"""Extract a clean chord chart from arbitrary text (e.g. a pasted song sheet).

	Keeps chord symbols and bar lines, drops everything else, and joins the
	survivors with single spaces.

	Example:
		```python
		chord_chart_from_text("Verse: (Em) D | C G, then repeat")
		# → "Em D | C G"
		```
	"""

	result: typing.List[str] = []

	for token in token_ranges(text):
		if token.raw == BAR_LINE:
			result.append(BAR_LINE)
			continue

		chord = keystrum.chords.parse_chord_symbol(clean_chord_token(token.raw))

		if chord is not None:
			result.append(chord.raw)

	return " ".join(result)
