# Render LaTeX math to inline SVG markup using matplotlib mathtext, bad LaTeX degrades to flagged source text.

import html
from io import BytesIO

import matplotlib
from matplotlib.figure import Figure
from matplotlib.font_manager import FontProperties
from matplotlib.mathtext import MathTextParser

import sdoc

_FONTSIZE    = 12 # points
_ERROR_COLOR = '#cc0000'
_HASHSALT    = 'calcpad' # fixed svg ids so the same tex always renders to the same markup

_PARSER      = MathTextParser ('path')

def set_fontsize (size):
	global _FONTSIZE
	_FONTSIZE = size

#...............................................................................................
def render_error (tex, error = None):
	title = '' if error is None else f' title="{html.escape (str (error).replace (chr (10), " ").strip ())}"'

	return sdoc.escape_braces (f'<span class="math-error"{title} style="color: {_ERROR_COLOR};">{html.escape (tex, quote = False)}</span>')

def _figure_to_svg (fig):
	data = BytesIO ()

	with matplotlib.rc_context ({'svg.hashsalt': _HASHSALT, 'svg.fonttype': 'path'}):
		fig.savefig (data, format = 'svg', bbox_inches = 'tight', pad_inches = 0.02, transparent = True, metadata = {'Date': None})

	svg = data.getvalue ().decode ('utf8')

	return sdoc.escape_braces (svg [svg.index ('<svg'):].strip ()) # strip xml prolog and doctype for inline use, braces of the style block as entities

def render (tex):
	"""Render LaTeX math to inline markup, never raises.

render (tex) -> '<span class="math">&lt;svg ...&gt;</span>'

tex = math mode LaTeX without delimiters, e.g. 'x^2' or '\\frac{1}{2}'.
Anything mathtext cannot parse is returned as the escaped source wrapped in a
'math-error' span with the parse error in its title. Output never contains
literal braces, so rendered markup is not picked up as a placeholder again.
	"""

	tex = tex.strip ()

	if not tex:
		return '<span class="math"></span>'

	try:
		_PARSER.parse (f'${tex}$', dpi = 72, prop = FontProperties (size = _FONTSIZE)) # validate before drawing

		fig = Figure (figsize = (0.01, 0.01))

		fig.text (0, 0, f'${tex}$', fontsize = _FONTSIZE)

		return f'<span class="math">{_figure_to_svg (fig)}</span>'

	except Exception as e: # mathtext raises ValueError for bad syntax, anything from drawing degrades the same way
		return render_error (tex, e)
