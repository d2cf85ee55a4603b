# Document tree for tables found in serialized HTML and spreadsheet-style cell indexing.
#
# Table (row, ...)      - table in order of appearance
# Row (cell, ...)       - row in document order, rows of thead / tbody / tfoot all count
# Cell ('text', header) - trimmed text content of a td or th, header distinction kept but not used for indexing

from html.parser import HTMLParser

#...............................................................................................
class Cell (tuple):
	def __new__ (cls, text = '', header = False):
		return tuple.__new__ (cls, (text, header))

	text   = property (lambda self: self [0])
	header = property (lambda self: self [1])

class Row (tuple):
	def __new__ (cls, *cells):
		return tuple.__new__ (cls, cells)

	cells  = property (lambda self: tuple (self))

class Table (tuple):
	def __new__ (cls, *rows):
		return tuple.__new__ (cls, rows)

	rows   = property (lambda self: tuple (self))

#...............................................................................................
class _TableBuilder (HTMLParser):
	def __init__ (self):
		HTMLParser.__init__ (self, convert_charrefs = True)

		self.tables = [] # tables in order of opening tag, None until closed
		self.stack  = [] # open tables: [index into tables, rows, open row or None, open cell or None], cell = [texts, header]

	def _close_cell (self, frame):
		if frame [3] is not None:
			texts, header = frame [3]
			frame [3]     = None

			frame [2].append (Cell (''.join (texts).strip (), header))

	def _close_row (self, frame):
		self._close_cell (frame)

		if frame [2] is not None:
			frame [1].append (Row (*frame [2]))

			frame [2] = None

	def handle_starttag (self, tag, attrs):
		if tag == 'table':
			self.stack.append ([len (self.tables), [], None, None])
			self.tables.append (None)

		elif not self.stack:
			pass

		elif tag == 'tr':
			frame = self.stack [-1]

			self._close_row (frame)

			frame [2] = []

		elif tag in {'td', 'th'}:
			frame = self.stack [-1]

			self._close_cell (frame)

			if frame [2] is None: # cell outside of tr, open implicit row
				frame [2] = []

			frame [3] = [[], tag == 'th']

	def handle_endtag (self, tag):
		if not self.stack:
			return

		frame = self.stack [-1]

		if tag == 'table':
			self._close_row (frame)
			self.stack.pop ()

			self.tables [frame [0]] = Table (*frame [1])

		elif tag == 'tr':
			self._close_row (frame)

		elif tag in {'td', 'th'}:
			self._close_cell (frame)

	def handle_data (self, data):
		for frame in self.stack: # text of nested table also belongs to enclosing cells, like DOM textContent
			if frame [3] is not None:
				frame [3] [0].append (data)

	def close (self):
		HTMLParser.close (self)

		while self.stack: # unterminated tables at end of document
			self.handle_endtag ('table')

		return tuple (self.tables)

def parse_tables (snapshot):
	builder = _TableBuilder ()

	builder.feed (snapshot)

	return builder.close ()

#...............................................................................................
def column_letter (idx): # no multi-letter columns, past 'Z' continues into punctuation
	return chr (65 + idx)

def cell_ref (row, col): # 0-based row and column -> 'A1' style coordinate
	return f'{column_letter (col)}{row + 1}'

def index_tables (snapshot):
	"""Build table index {'table1': {'A1': 'text', ...}, ...} from HTML snapshot.

Tables are named by order of appearance, cells by structural position only,
empty cells map to empty strings.
	"""

	index = {}

	for tidx, table in enumerate (parse_tables (snapshot)):
		cells = index [f'table{tidx + 1}'] = {}

		for ridx, row in enumerate (table):
			for cidx, cell in enumerate (row):
				cells [cell_ref (ridx, cidx)] = cell.text

	return index

#...............................................................................................
_BRACE_ENTITIES = {ord ('{'): '&#123;', ord ('}'): '&#125;'}

def escape_braces (markup): # generated markup must not contain placeholder delimiters or it would be scanned again
	return markup.translate (_BRACE_ENTITIES)
