# Find {expr} placeholders in document text, classify and evaluate them with SymPy and render results back into markup.
#
# Placeholder classes in priority order:
#   {$$tex$$}                - LaTeX math rendered to markup
#   {... table1[A1:B2] ...}  - arithmetic with table ranges, rewritten to get_range ("table1", "A1", "B2")
#   {...}                    - plain arithmetic

from collections import namedtuple
from fractions import Fraction
from functools import partial
import html
import os
import re
import sys

import sympy as sp
from sympy.parsing.sympy_parser import parse_expr, repeated_decimals, auto_number, factorial_notation, convert_xor

import sdoc
import slatex

_PRECISION     = 3 # decimal places of numeric results
_ERROR_COLOR   = 'red'
_DEBUG         = bool (os.environ.get ('CALCPAD_DEBUG'))

_TRANSFORMS    = (repeated_decimals, auto_number, factorial_notation, convert_xor) # no auto_symbol, unknown names are errors

_rec_placeholder = re.compile (r'\{([^}]+)\}')
_rec_range       = re.compile (r'(table\d+)\[([A-Z]\d+):([A-Z]\d+)\]')
_rec_range_bad   = re.compile (r'table\d+\s*\[')
_rec_coord       = re.compile (r'^([A-Z])(\d+)$')
_rec_number      = re.compile (r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$')

def set_precision (precision):
	global _PRECISION
	_PRECISION = precision

def set_error_color (color):
	global _ERROR_COLOR
	_ERROR_COLOR = color

def set_debug (state):
	global _DEBUG
	_DEBUG = state

#...............................................................................................
class RangeSyntaxError (SyntaxError): pass
class CoordinateError (ValueError): pass
class TableNotFoundError (ReferenceError): pass
class UnsafeExpressionError (ValueError): pass

Placeholder = namedtuple ('Placeholder', 'text expr start end') # text = '{expr}', start / end = offsets of text in snapshot

def scan_placeholders (snapshot):
	return [Placeholder (m.group (0), m.group (1), m.start (), m.end ()) for m in _rec_placeholder.finditer (snapshot)]

def classify (expr):
	if len (expr) >= 4 and expr.startswith ('$$') and expr.endswith ('$$'):
		return 'latex'
	elif 'table' in expr:
		return 'table'
	else:
		return 'arith'

def rewrite_ranges (expr):
	text = _rec_range.sub (lambda m: f'get_range ("{m.group (1)}", "{m.group (2)}", "{m.group (3)}")', expr)
	m    = _rec_range_bad.search (text)

	if m:
		raise RangeSyntaxError (f'invalid table range at {text [m.start ():]!r}')

	return text

#...............................................................................................
def parse_coord (coord):
	m = _rec_coord.match (coord)

	if not m:
		raise CoordinateError (f'invalid cell coordinate {coord!r}')

	return ord (m.group (1)) - 65, int (m.group (2)) - 1

def parse_number (text): # cell text -> exact Rational or None if not a plain decimal number
	text = text.strip ()

	if not _rec_number.match (text):
		return None

	frac = Fraction (text)

	return sp.Rational (frac.numerator, frac.denominator)

def get_range (tables, name, start, end):
	"""Numeric values of a rectangular cell range in column-major order.

Bounds are normalized so reversed ranges like B2:A1 cover the same cells as
A1:B2. Empty, missing and non-numeric cells are skipped.
	"""

	table = tables.get (name)

	if table is None:
		raise TableNotFoundError (f'table {name!r} not found')

	col0, row0 = parse_coord (start)
	col1, row1 = parse_coord (end)
	vals       = []

	for col in range (min (col0, col1), max (col0, col1) + 1):
		for row in range (min (row0, row1), max (row0, row1) + 1):
			text = table.get (sdoc.cell_ref (row, col))
			num  = None if text is None else parse_number (text)

			if num is not None:
				vals.append (num)

	return vals

#...............................................................................................
def _values (args): # flatten sequences passed to aggregates
	vals = []

	for arg in args:
		if isinstance (arg, (list, tuple, sp.Tuple)):
			vals.extend (_values (arg))
		else:
			vals.append (sp.sympify (arg, strict = True))

	return vals

def _nonempty (args, func):
	vals = _values (args)

	if not vals:
		raise ValueError (f'{func} of empty sequence')

	return vals

def _sum (*args):
	return sp.Add (*_values (args))

def _prod (*args):
	return sp.Mul (*_values (args))

def _count (*args):
	return sp.Integer (len (_values (args)))

def _mean (*args):
	vals = _nonempty (args, 'mean')

	return sp.Add (*vals) / len (vals)

def _median (*args):
	vals = sorted (_nonempty (args, 'median'), key = float)
	mid  = len (vals) // 2

	return vals [mid] if len (vals) % 2 else (vals [mid - 1] + vals [mid]) / 2

def _variance (*args): # sample variance
	vals = _values (args)

	if len (vals) < 2:
		raise ValueError ('variance needs at least two values')

	mean = sp.Add (*vals) / len (vals)

	return sp.Add (*((v - mean) ** 2 for v in vals)) / (len (vals) - 1)

def _std (*args):
	return sp.sqrt (_variance (*args))

def _min (*args):
	return sp.Min (*_nonempty (args, 'min'))

def _max (*args):
	return sp.Max (*_nonempty (args, 'max'))

def _round (x, n = 0):
	n = int (n)

	return sp.Integer (int (round (float (x), n))) if n <= 0 else sp.Float (round (float (x), n))

_NAMESPACE = {
	'__builtins__': {},
	'Integer'     : sp.Integer,
	'Float'       : sp.Float,
	'Rational'    : sp.Rational,
	'factorial'   : sp.factorial,
	'factorial2'  : sp.factorial2,
	'pi'          : sp.pi,
	'e'           : sp.E,
	'E'           : sp.E,
	'I'           : sp.I,
	'sqrt'        : sp.sqrt,
	'cbrt'        : sp.cbrt,
	'exp'         : sp.exp,
	'log'         : sp.log,
	'ln'          : sp.log,
	'log10'       : lambda x: sp.log (x, 10),
	'log2'        : lambda x: sp.log (x, 2),
	'sin'         : sp.sin,
	'cos'         : sp.cos,
	'tan'         : sp.tan,
	'asin'        : sp.asin,
	'acos'        : sp.acos,
	'atan'        : sp.atan,
	'atan2'       : sp.atan2,
	'sinh'        : sp.sinh,
	'cosh'        : sp.cosh,
	'tanh'        : sp.tanh,
	'floor'       : sp.floor,
	'ceil'        : sp.ceiling,
	'abs'         : sp.Abs,
	'sign'        : sp.sign,
	'mod'         : sp.Mod,
	'gcd'         : sp.gcd,
	'lcm'         : sp.lcm,
	'round'       : _round,
	'sum'         : _sum,
	'prod'        : _prod,
	'count'       : _count,
	'mean'        : _mean,
	'median'      : _median,
	'variance'    : _variance,
	'std'         : _std,
	'min'         : _min,
	'max'         : _max,
}

def check_source (text): # strings would reach sympify () which evaluates them with builtins available
	if '__' in text:
		raise UnsafeExpressionError ('double underscore names are not allowed')
	elif '"' in text or "'" in text:
		raise UnsafeExpressionError ('string literals are not allowed')

def evaluate_arithmetic (text, local = None): # text must have passed check_source ()
	return parse_expr (text.strip (), local_dict = dict (local or {}), transformations = _TRANSFORMS, global_dict = dict (_NAMESPACE))

#...............................................................................................
def _real_number (val): # int, float or None if val is not a real number
	if isinstance (val, bool):
		return None
	elif isinstance (val, (int, float)):
		return val
	elif isinstance (val, sp.Integer):
		return int (val)
	elif isinstance (val, sp.Basic) and val.is_number and val.is_real:
		return float (val)

	return None

def format_number (num, precision = None):
	if isinstance (num, int):
		return str (num)

	num = round (num, _PRECISION if precision is None else precision)

	return str (int (num)) if num.is_integer () else repr (num)

def format_result (val, precision = None):
	if isinstance (val, (list, tuple, sp.Tuple)):
		return f'[{", ".join (format_result (v, precision) for v in val)}]'

	num = _real_number (val)

	if num is not None:
		return format_number (num, precision)

	return sdoc.escape_braces (html.escape (str (val), quote = False)) # sets print as {1, 2}

#...............................................................................................
class EvalCache:
	"""Rendered output by exact expression source, entries are only ever added."""

	def __init__ (self):
		self.entries = {}

	def __len__ (self):
		return len (self.entries)

	def __contains__ (self, key):
		return key in self.entries

	def get (self, key):
		return self.entries.get (key)

	def put (self, key, output):
		self.entries [key] = output

class Evaluator:
	"""Evaluate placeholders of one document session.

The evaluator owns its cache, create one per open document and drop it with the
document. Evaluation of a single placeholder never raises, failures render as
the source text flagged in the error color.
	"""

	def __init__ (self, cache = None, precision = None, error_color = None):
		self.cache       = EvalCache () if cache is None else cache
		self.precision   = _PRECISION if precision is None else precision
		self.error_color = _ERROR_COLOR if error_color is None else error_color

	def error_marker (self, expr):
		return f'<span style="color: {self.error_color};">{sdoc.escape_braces (expr)}</span>'

	def _evaluate (self, expr, tables):
		kind = classify (expr)
		text = html.unescape (expr) # expression comes out of serialized markup

		if kind == 'latex':
			return slatex.render (text [2:-2])

		check_source (text)

		if kind == 'table':
			return format_result (evaluate_arithmetic (rewrite_ranges (text), {'get_range': partial (get_range, tables)}), self.precision)

		return format_result (evaluate_arithmetic (text), self.precision)

	def evaluate (self, expr, tables = None):
		out = self.cache.get (expr)

		if out is not None:
			return out

		try:
			out = self._evaluate (expr, {} if tables is None else tables)

		except Exception as e:
			if _DEBUG:
				print (f'error evaluating {expr!r}: {e.__class__.__name__}: {str (e).strip ()}', file = sys.stderr)

			out = self.error_marker (expr)

		self.cache.put (expr, out)

		return out

	def evaluate_document (self, snapshot):
		tables = sdoc.index_tables (snapshot)
		parts  = []
		last   = 0

		for ph in scan_placeholders (snapshot):
			parts.append (snapshot [last : ph.start])
			parts.append (self.evaluate (ph.expr, tables))

			last = ph.end

		parts.append (snapshot [last:])

		if _DEBUG:
			print (f'evaluated document: {len (tables)} tables, {len (self.cache)} cached expressions', file = sys.stderr)

		return ''.join (parts)
