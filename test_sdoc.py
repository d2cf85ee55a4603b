#!/usr/bin/env python3
# python 3.8+

# Testing of table tree building and cell coordinate indexing.

import os
import subprocess
import sys
import unittest

from sdoc import Cell, Row, Table, cell_ref, column_letter, escape_braces, index_tables, parse_tables

if __name__ == '__main__':
	if len (sys.argv) == 1:
		subprocess.run ([sys.executable, '-m', 'unittest', '-v', os.path.basename (sys.argv [0])])
		sys.exit (0)

_TABLE_2x3 = '''
<p>Before</p>
<table><tbody>
	<tr><td><p>x</p></td><td><p>hello</p></td><td><p>3</p></td></tr>
	<tr><td><p></p></td><td><p>5</p></td><td><p>{2+2}</p></td></tr>
</tbody></table>
<p>After</p>
'''

class Test (unittest.TestCase):
	def test_column_letter (self):
		self.assertEqual (column_letter (0), 'A')
		self.assertEqual (column_letter (1), 'B')
		self.assertEqual (column_letter (25), 'Z')
		self.assertEqual (cell_ref (0, 0), 'A1')
		self.assertEqual (cell_ref (2, 1), 'B3')

	def test_coordinates_by_position (self):
		index = index_tables (_TABLE_2x3)

		self.assertEqual (list (index), ['table1'])
		self.assertEqual (list (index ['table1']), ['A1', 'B1', 'C1', 'A2', 'B2', 'C2'])
		self.assertEqual (index ['table1'] ['B1'], 'hello')
		self.assertEqual (index ['table1'] ['C2'], '{2+2}')

	def test_empty_cell_is_empty_string (self):
		index = index_tables (_TABLE_2x3)

		self.assertIn ('A2', index ['table1'])
		self.assertEqual (index ['table1'] ['A2'], '')

	def test_header_and_data_cells_uniform (self):
		index = index_tables ('<table><thead><tr><th>a</th><th>b</th></tr></thead><tbody><tr><td>1</td><td>2</td></tr></tbody></table>')

		self.assertEqual (index, {'table1': {'A1': 'a', 'B1': 'b', 'A2': '1', 'B2': '2'}})

	def test_tables_named_by_order (self):
		index = index_tables ('<table><tr><td>1</td></tr></table><p>text</p><table><tr><td>2</td></tr></table>')

		self.assertEqual (index, {'table1': {'A1': '1'}, 'table2': {'A1': '2'}})

	def test_text_trimmed_and_entities_decoded (self):
		index = index_tables ('<table><tr><td>  <p> <strong>1</strong>2 </p>\n</td><td>a &amp; b</td></tr></table>')

		self.assertEqual (index ['table1'], {'A1': '12', 'B1': 'a & b'})

	def test_implicit_end_tags (self):
		index = index_tables ('<table><tr><td>1<td>2<tr><td>3<td>4</table>')

		self.assertEqual (index ['table1'], {'A1': '1', 'B1': '2', 'A2': '3', 'B2': '4'})

	def test_unterminated_table (self):
		index = index_tables ('<table><tr><td>1</td><td>2')

		self.assertEqual (index ['table1'], {'A1': '1', 'B1': '2'})

	def test_nested_table_indexed_separately (self):
		index = index_tables ('<table><tr><td>a<table><tr><td>1</td></tr></table></td><td>b</td></tr></table>')

		self.assertEqual (index ['table1'], {'A1': 'a1', 'B1': 'b'})
		self.assertEqual (index ['table2'], {'A1': '1'})

	def test_no_tables (self):
		self.assertEqual (index_tables ('<p>{1+1}</p>'), {})
		self.assertEqual (index_tables (''), {})

	def test_tree (self):
		tables = parse_tables ('<table><tr><th>h</th><td>d</td></tr><tr></tr></table>')

		self.assertEqual (tables, (Table (Row (Cell ('h', True), Cell ('d')), Row ()),))
		self.assertEqual (tables [0].rows [0].cells [0].text, 'h')
		self.assertTrue (tables [0].rows [0].cells [0].header)
		self.assertFalse (tables [0].rows [0].cells [1].header)
		self.assertEqual (len (tables [0].rows [1]), 0)

	def test_escape_braces (self):
		self.assertEqual (escape_braces ('*{stroke: none}'), '*&#123;stroke: none&#125;')
		self.assertEqual (escape_braces ('<p>plain</p>'), '<p>plain</p>')
		self.assertEqual (index_tables (escape_braces ('<table><tr><td>{x}</td></tr></table>')), {'table1': {'A1': '{x}'}})
