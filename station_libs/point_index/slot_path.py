from __future__ import annotations

from typing import List

from .errors import AddressingError


SLOT_SCHEME = "slot:"
ESCAPE_CHAR = "$"

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _is_plain(ch: str) -> bool:
	return ch.isascii() and (ch.isalnum() or ch == "_")


def escape(name: str) -> str:
	"""Escape a slot name.

	ASCII letters, digits and '_' pass through, any other character up to
	U+00FF becomes '$xx'. Wider characters have no two digit form.
	"""
	out: List[str] = []
	for ch in name:
		if _is_plain(ch):
			out.append(ch)
		elif ord(ch) <= 0xFF:
			out.append(f"{ESCAPE_CHAR}{ord(ch):02x}")
		else:
			raise ValueError(f"Cannot escape character {ch!r} (U+{ord(ch):04X}) in slot name {name!r}")
	return "".join(out)


def unescape(path: str) -> str:
	"""Decode every '$XX' in a slot path in a single left-to-right scan.

	A '$' without two following hex digits is kept literally.
	"""
	out: List[str] = []
	i = 0
	n = len(path)
	while i < n:
		ch = path[i]
		if ch == ESCAPE_CHAR and i + 2 < n:
			hi, lo = path[i + 1], path[i + 2]
			if hi in _HEX_DIGITS and lo in _HEX_DIGITS:
				out.append(chr(int(hi + lo, 16)))
				i += 3
				continue
		out.append(ch)
		i += 1
	return "".join(out)


def path_to_address_suffix(path: str) -> str:
	"""Convert a relative slot path into a point address suffix.

	'/' becomes '.', each '$XX' triplet is dropped, and so is anything else
	that is not an ASCII letter or digit.
	"""
	out: List[str] = []
	i = 0
	n = len(path)
	while i < n:
		ch = path[i]
		if ch == "/":
			out.append(".")
		elif ch == ESCAPE_CHAR:
			i += 3
			continue
		elif ch.isascii() and ch.isalnum():
			out.append(ch)
		i += 1
	return "".join(out)


def strip_scheme(slot_ord: str) -> str:
	if slot_ord.startswith(SLOT_SCHEME):
		return slot_ord[len(SLOT_SCHEME):]
	return slot_ord


def relative_slot_path(point_path: str, source_path: str) -> str:
	"""Return point_path relative to source_path, without the joining '/'."""
	prefix = source_path if source_path.endswith("/") else source_path + "/"
	if not point_path.startswith(prefix):
		raise AddressingError(f"Slot path '{point_path}' is not below source path '{source_path}'")
	return point_path[len(prefix):]


def split_path(path: str) -> List[str]:
	return [p for p in path.split("/") if p]
