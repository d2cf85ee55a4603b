#!/usr/bin/env python3
# python 3.8+

# Testing of command line host and file backed editing surface.

from contextlib import redirect_stderr, redirect_stdout
import io
import os
import shutil
import subprocess
import sys
import tempfile
import unittest

import calcpad
import sexpr

if __name__ == '__main__':
	if len (sys.argv) == 1:
		subprocess.run ([sys.executable, '-m', 'unittest', '-v', os.path.basename (sys.argv [0])])
		sys.exit (0)

_DOC = '<table><tr><td>2</td><td>3</td></tr></table>\n<p>Total: {sum (table1[A1:B1])}, ratio {1/8}</p>\n'

class Test (unittest.TestCase):
	def setUp (self):
		self.dir  = tempfile.mkdtemp ()
		self.path = os.path.join (self.dir, 'page.html')

		with open (self.path, 'w', encoding = 'utf8') as fd:
			fd.write (_DOC)

	def tearDown (self):
		shutil.rmtree (self.dir)

	def read (self):
		with open (self.path, encoding = 'utf8') as fd:
			return fd.read ()

	def main (self, *args):
		out, err = io.StringIO (), io.StringIO ()

		with redirect_stdout (out), redirect_stderr (err):
			ret = calcpad.main (list (args))

		return ret, out.getvalue (), err.getvalue ()

	def test_one_shot_stdout (self):
		ret, out, err = self.main (self.path)

		self.assertEqual (ret, 0)
		self.assertIn ('<p>Total: 5, ratio 0.125</p>', out)
		self.assertEqual (self.read (), _DOC)

	def test_inplace (self):
		ret, out, err = self.main ('-i', self.path)

		self.assertEqual (ret, 0)
		self.assertEqual (out, '')
		self.assertIn ('<p>Total: 5, ratio 0.125</p>', self.read ())

	def test_precision_and_color (self):
		with open (self.path, 'w', encoding = 'utf8') as fd:
			fd.write ('<p>{1/8} {nope}</p>')

		ret, out, err = self.main ('--precision=1', '--color=blue', self.path)

		self.assertEqual (ret, 0)
		self.assertEqual (out, '<p>0.1 <span style="color: blue;">nope</span></p>')

	def test_version_and_help (self):
		self.assertEqual (self.main ('-v') [:2], (0, f'{calcpad._VERSION}\n'))
		self.assertTrue (self.main ('--help') [1].startswith ('usage: calcpad'))

	def test_usage_errors (self):
		self.assertEqual (self.main () [0], 1)
		self.assertEqual (self.main ('--bogus', self.path) [0], 1)
		self.assertEqual (self.main ('-p', 'x', self.path) [0], 1)
		self.assertEqual (self.main ('--fontsize=big', self.path) [0], 1)
		self.assertEqual (self.main (os.path.join (self.dir, 'missing.html')) [0], 1)

	def test_file_surface (self):
		surface = calcpad.FileSurface (self.path)
		calls   = []
		subscr  = surface.on_content_changed (lambda: calls.append (1))

		self.assertEqual (surface.get_content_snapshot (), _DOC)
		self.assertFalse (surface.poll ())

		with redirect_stderr (io.StringIO ()):
			surface.replace_content ('<p>new</p>')

		self.assertEqual (self.read (), '<p>new</p>')
		self.assertFalse (surface.poll ()) # own write
		self.assertEqual (calls, [])

		stat = os.stat (self.path)

		os.utime (self.path, (stat.st_atime, stat.st_mtime + 10)) # external edit

		self.assertTrue (surface.poll ())
		self.assertEqual (calls, [1])

		subscr.cancel ()
		os.utime (self.path, (stat.st_atime, stat.st_mtime + 20))

		self.assertTrue (surface.poll ())
		self.assertEqual (calls, [1])

	def test_file_surface_selection (self):
		surface = calcpad.FileSurface (self.path)

		self.assertEqual (surface.get_selection (), (0, 0))

		surface.set_selection (4, 9)

		self.assertEqual (surface.get_selection (), (4, 9))

	def test_evaluate_file_unchanged_not_rewritten (self):
		with open (self.path, 'w', encoding = 'utf8') as fd:
			fd.write ('<p>no placeholders</p>')

		mtime = os.stat (self.path).st_mtime

		os.utime (self.path, (mtime - 100, mtime - 100))

		calcpad.evaluate_file (self.path, sexpr.Evaluator (), inplace = True)

		self.assertEqual (os.stat (self.path).st_mtime, mtime - 100)
